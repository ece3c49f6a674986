import logging

from elastic_transport import TransportError
from elasticsearch import ApiError

from reindexer.errors import CursorError
from reindexer.models import SourceDocument

logger = logging.getLogger(__name__)

# returned on every hit without being asked for
HIT_METADATA = {"_index", "_id", "_score", "_routing", "_source", "_version", "_seq_no", "_primary_term", "_ignored"}


def build_query(range_field=None, window=None):
	"""Range on ``range_field`` is inclusive of the window start and exclusive of its end."""
	if not range_field or window is None or window.unbounded:
		return {"match_all": {}}
	bounds = {}
	if window.start is not None:
		bounds["gte"] = window.start.isoformat()
	if window.end is not None:
		bounds["lt"] = window.end.isoformat()
	return {"bool": {"filter": [{"range": {range_field: bounds}}]}}


def requested_fields(config):
	"""Preserved metadata names that have to be asked for explicitly."""
	names = [config.parent_field, config.timestamp_field]
	return [name for name in names if name and name not in HIT_METADATA]


class ScanCursor:

	def __init__(self, client, index, window, config, range_field=None):
		self.client = client
		self.index = index
		self.window = window
		self.config = config
		self.range_field = range_field
		self.scroll_id = None
		self.exhausted = False

	def open(self):
		kwargs = {}
		fields = requested_fields(self.config)
		if fields:
			kwargs["fields"] = fields
		try:
			resp = self.client.search(
				index=self.index,
				query=build_query(self.range_field, self.window),
				size=self.config.batch_size,
				scroll=self.config.keep_alive,
				sort=["_doc"],
				**kwargs,
			)
		except (ApiError, TransportError) as e:
			raise CursorError(f"Could not open scroll on '{self.index}' for {self.window}: {e}") from e
		return self._page(resp)

	def next_page(self):
		if self.exhausted:
			return []
		if self.scroll_id is None:
			return self.open()
		try:
			resp = self.client.scroll(scroll_id=self.scroll_id, scroll=self.config.keep_alive)
		except (ApiError, TransportError) as e:
			raise CursorError(f"Scroll on '{self.index}' failed for {self.window}: {e}") from e
		return self._page(resp)

	def _page(self, resp):
		self.scroll_id = resp.get("_scroll_id") or self.scroll_id
		hits = resp["hits"]["hits"]
		if not hits:
			self.close()
			return []
		page = []
		for hit in hits:
			logger.debug("Document retrieved %s", hit["_id"])
			page.append(SourceDocument.from_hit(hit, self.config.parent_field, self.config.timestamp_field))
		return page

	def close(self):
		self.exhausted = True
		if self.scroll_id is None:
			return
		scroll_id, self.scroll_id = self.scroll_id, None
		try:
			self.client.clear_scroll(scroll_id=scroll_id)
		except (ApiError, TransportError) as e:
			logger.warning("Could not clear scroll for %s, it will expire on its own: %s", self.window, e)

	def __iter__(self):
		while True:
			page = self.next_page()
			if not page:
				return
			yield page

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc, tb):
		self.close()
		return False
