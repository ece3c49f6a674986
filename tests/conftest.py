"""
Shared fixtures: an in-memory stand-in for the Elasticsearch client.

It understands the handful of calls the reindexer makes (count, search with
scroll, scroll, clear_scroll, bulk, close) and evaluates the queries the
reindexer builds: match_all, and bool filters made of range clauses. Like
Elasticsearch 8, hits carry `_routing` at the top level and any other
metadata only under `fields`, and only when the search asked for it.
"""

import itertools
from datetime import datetime, timezone

import pytest

from reindexer.config import ReindexConfig

BASE_DATE = datetime(2015, 7, 25, tzinfo=timezone.utc)
TIMESTAMP = "timestamp"
INDEX = "test"
NEW_INDEX = "testnew"


class FakeElasticsearch:

	def __init__(self):
		self.indices = {}
		self.scrolls = {}
		self.cleared = []
		self.bulk_requests = []
		self.search_calls = []
		self.scroll_calls = []
		self.fail_on = {}
		self.reject_ids = set()
		self.closed = 0
		self._ids = itertools.count(1)

	def index_document(self, index, source, doc_id=None, **meta):
		doc_id = doc_id or f"doc-{next(self._ids)}"
		self.indices.setdefault(index, {})[doc_id] = {
			"_source": dict(source),
			"meta": {f"_{k.lstrip('_')}": v for k, v in meta.items()},
		}
		return doc_id

	def get_document(self, index, doc_id):
		return self.indices.get(index, {}).get(doc_id)

	def _raise_if_failing(self, operation):
		error = self.fail_on.get(operation)
		if error is not None:
			raise error

	def _matches(self, doc, query):
		if "match_all" in query:
			return True
		for clause in query["bool"]["filter"]:
			if "range" in clause:
				(field, bounds), = clause["range"].items()
				value = doc["_source"].get(field)
				if value is None:
					return False
				if "gte" in bounds and not value >= bounds["gte"]:
					return False
				if "lt" in bounds and not value < bounds["lt"]:
					return False
		return True

	def _hit(self, index, doc_id, doc, requested=None):
		hit = {"_index": index, "_id": doc_id, "_source": dict(doc["_source"])}
		if "_routing" in doc["meta"]:
			hit["_routing"] = doc["meta"]["_routing"]
		fields = {k: [v] for k, v in doc["meta"].items() if k in (requested or ())}
		if fields:
			hit["fields"] = fields
		return hit

	def options(self, **kwargs):
		return self

	def count(self, index, query):
		self._raise_if_failing("count")
		docs = self.indices.get(index, {})
		return {"count": sum(1 for doc in docs.values() if self._matches(doc, query))}

	def search(self, index, query, size, scroll, sort=None, fields=None):
		self._raise_if_failing("search")
		self.search_calls.append({"index": index, "query": query, "size": size, "scroll": scroll, "sort": sort,
								  "fields": fields})
		docs = self.indices.get(index, {})
		hits = [self._hit(index, doc_id, doc, fields) for doc_id, doc in docs.items() if self._matches(doc, query)]
		scroll_id = f"scroll-{len(self.search_calls)}"
		self.scrolls[scroll_id] = {"hits": hits, "offset": 0, "size": size}
		return self._next_page(scroll_id)

	def scroll(self, scroll_id, scroll):
		self._raise_if_failing("scroll")
		self.scroll_calls.append({"scroll_id": scroll_id, "scroll": scroll})
		return self._next_page(scroll_id)

	def _next_page(self, scroll_id):
		state = self.scrolls[scroll_id]
		page = state["hits"][state["offset"]:state["offset"] + state["size"]]
		state["offset"] += len(page)
		return {"_scroll_id": scroll_id, "hits": {"hits": page}}

	def clear_scroll(self, scroll_id):
		self.cleared.append(scroll_id)
		self.scrolls.pop(scroll_id, None)
		return {"succeeded": True}

	def close(self):
		self.closed += 1

	def bulk(self, operations):
		self._raise_if_failing("bulk")
		self.bulk_requests.append(operations)
		items = []
		for meta, source in zip(operations[::2], operations[1::2]):
			action = dict(meta["index"])
			index = action.pop("_index")
			doc_id = action.pop("_id")
			if doc_id in self.reject_ids:
				items.append({"index": {"_index": index, "_id": doc_id, "status": 400,
										"error": {"type": "mapper_parsing_exception", "reason": "failed to parse"}}})
				continue
			self.index_document(index, source, doc_id=doc_id, **action)
			items.append({"index": {"_index": index, "_id": doc_id, "status": 201}})
		errors = any("error" in item["index"] for item in items)
		return {"errors": errors, "items": items}


def generate_document(date):
	return {TIMESTAMP: date.isoformat(), "name": "document", "value": 42}


@pytest.fixture
def es():
	return FakeElasticsearch()


@pytest.fixture
def config():
	return ReindexConfig(batch_size=2)
