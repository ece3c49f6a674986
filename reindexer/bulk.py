import logging

from elastic_transport import TransportError
from elasticsearch import ApiError

from reindexer.models import BatchOutcome, BulkFailure

logger = logging.getLogger(__name__)

# index action parameters accepted by Elasticsearch 8 bulk requests
BULK_META_PARAMETERS = {"routing", "pipeline", "version", "version_type", "if_seq_no", "if_primary_term",
						"require_alias", "dynamic_templates"}


def meta_parameter(field_name):
	"""Bulk metadata parameter for a preserved field, e.g. ``_routing`` -> ``routing``."""
	return field_name.lstrip("_")


def describe_error(error):
	if isinstance(error, dict):
		reason = error.get("reason")
		error_type = error.get("type")
		if error_type and reason:
			return f"{error_type}: {reason}"
		return reason or error_type or str(error)
	return str(error)


class BulkRewriter:

	def __init__(self, client, config):
		self.client = client
		self.config = config
		self.parent_param = meta_parameter(config.parent_field)
		self.timestamp_param = meta_parameter(config.timestamp_field)
		self.warned = set()

	def _preserve(self, meta, field_name, param, value, doc_id):
		if param not in BULK_META_PARAMETERS and param not in self.warned:
			self.warned.add(param)
			logger.warning("Documents carry %s, written as bulk parameter '%s' which Elasticsearch 7 and later "
						   "reject; those documents will be recorded as failures", field_name, param)
		logger.debug("Added %s '%s' to document %s", field_name, value, doc_id)
		meta[param] = value

	def build_operations(self, page, destination_index):
		operations = []
		for doc in page:
			meta = {"_index": destination_index, "_id": doc.id}
			if doc.parent is not None:
				self._preserve(meta, self.config.parent_field, self.parent_param, doc.parent, doc.id)
			if doc.timestamp is not None:
				self._preserve(meta, self.config.timestamp_field, self.timestamp_param, doc.timestamp, doc.id)
			operations.append({"index": meta})
			operations.append(doc.source)
		return operations

	def rewrite(self, page, destination_index):
		if not page:
			return BatchOutcome()

		operations = self.build_operations(page, destination_index)
		try:
			resp = self.client.bulk(operations=operations)
		except (ApiError, TransportError) as e:
			logger.error("Bulk request of %d documents into '%s' failed: %s", len(page), destination_index, e)
			reason = str(e)
			return BatchOutcome(
				attempted=len(page),
				failed=[BulkFailure(reason=f"bulk request of {len(page)} documents failed: {reason}", kind="transport")],
				transport_error=reason,
			)

		failed = []
		if resp.get("errors"):
			for item in resp["items"]:
				result = next(iter(item.values()))
				if "error" in result:
					failed.append(BulkFailure(document_id=str(result.get("_id")), reason=describe_error(result["error"])))
			logger.error("Problem with inserting data: %d of %d documents rejected by '%s'", len(failed), len(page), destination_index)
			for failure in failed:
				logger.error("%s", failure)
		return BatchOutcome(attempted=len(page), failed=failed)
