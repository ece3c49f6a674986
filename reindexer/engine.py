import logging
import time

from elastic_transport import TransportError
from elasticsearch import ApiError

from reindexer.bulk import BulkRewriter
from reindexer.config import ReindexConfig
from reindexer.cursor import ScanCursor, build_query
from reindexer.errors import ConfigurationError, CursorError
from reindexer.models import ReindexResult, TimeWindow
from reindexer.windows import WindowPlanner, resolve_end

logger = logging.getLogger(__name__)


class ReindexEngine:
	"""Copies one index into another, window by window, newest window first.

	The source and destination clients may be the same object (copy within a
	cluster) or two connections (copy between clusters).
	"""

	def __init__(self, source_client, destination_client, index, destination_index,
				 doc_type=None, range_field=None, config=None):
		self.source_client = source_client
		self.destination_client = destination_client
		self.index = index
		self.destination_index = destination_index
		if doc_type:
			raise ConfigurationError(f"Type filter '{doc_type}' is not supported, Elasticsearch 8 has no mapping types")
		self.range_field = range_field
		self.config = config or ReindexConfig()
		self.rewriter = BulkRewriter(destination_client, self.config)

	def estimate(self, window=None):
		"""Number of source documents in ``window``. The window end is exclusive."""
		query = build_query(self.range_field, window)
		try:
			resp = self.source_client.count(index=self.index, query=query)
		except (ApiError, TransportError) as e:
			raise CursorError(f"Could not count documents in '{self.index}': {e}") from e
		return resp["count"]

	def close(self):
		self.source_client.close()
		if self.destination_client is not self.source_client:
			self.destination_client.close()

	def overall_window(self, start=None, end=None, now=None):
		"""The full ``[start, end)`` range a run covers, with the end resolved once."""
		if self.range_field is None or start is None:
			return TimeWindow()
		end = resolve_end(end, now)
		if start > end:
			raise ConfigurationError(f"Start date {start} is after end date {end}")
		return TimeWindow(start=start, end=end)

	def run(self, start=None, end=None, window_days=None, stop_event=None, now=None):
		planner = WindowPlanner(window_days or self.config.window_days)
		overall = self.overall_window(start, end, now)

		result = ReindexResult()
		started = time.time()

		try:
			found = self.estimate(overall)
			logger.info("Found %d items to reindex from '%s' into '%s'.", found, self.index, self.destination_index)
			if found == 0:
				logger.info("Re-index finished - no documents to reindex.")
				result.status = "no_documents"
				result.elapsed = time.time() - started
				return result

			for window in planner.plan(overall.start, overall.end):
				if stop_event is not None and stop_event.is_set():
					result.status = "cancelled"
					break
				self._reindex_window(window, result, stop_event)
				result.windows_processed += 1
				if result.status == "cancelled":
					break
		except CursorError as e:
			result.status = "aborted"
			result.elapsed = time.time() - started
			e.result = result
			logger.error("Re-index aborted after %d documents: %s", result.documents_written, e)
			raise

		result.elapsed = time.time() - started
		logger.info("Inserted %d of %d documents in %.2fs (%s).", result.documents_written,
					result.documents_found, result.elapsed, result.status)
		return result

	def _reindex_window(self, window, result, stop_event=None):
		logger.info("Start re-indexing for data in %s", window)
		written = 0
		with ScanCursor(self.source_client, self.index, window, self.config,
						range_field=self.range_field) as cursor:
			for page in cursor:
				outcome = self.rewriter.rewrite(page, self.destination_index)
				result.add_batch(outcome)
				written += outcome.written
				logger.info("This batch inserted %d documents.", outcome.written)
				if stop_event is not None and stop_event.is_set():
					logger.warning("Stop requested, leaving window %s before it is exhausted", window)
					result.status = "cancelled"
					return
		logger.info("Inserted %d documents for %s", written, window)
