from reindexer.config import ReindexConfig
from reindexer.connections import create_client
from reindexer.engine import ReindexEngine
from reindexer.errors import ConfigurationError


class ReindexTarget:
	"""Where documents go. Subclasses only decide which clients the engine gets."""

	def __init__(self, engine):
		self.engine = engine

	def window(self, start=None, end=None):
		return self.engine.overall_window(start, end)

	def estimate(self, window=None):
		return self.engine.estimate(window)

	def run(self, start=None, end=None, window_days=None, stop_event=None):
		return self.engine.run(start, end, window_days, stop_event=stop_event)

	def close(self):
		self.engine.close()

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc, tb):
		self.close()
		return False


class IntraClusterTarget(ReindexTarget):

	def __init__(self, client, index, destination_index, doc_type=None, range_field=None, config=None):
		if not index:
			raise ConfigurationError("Source index name is required")
		if not destination_index or destination_index == index:
			raise ConfigurationError("Reindexing within one cluster needs a destination index different from the source")
		super().__init__(ReindexEngine(client, client, index, destination_index,
									   doc_type=doc_type, range_field=range_field,
									   config=config or ReindexConfig()))


class InterClusterTarget(ReindexTarget):

	def __init__(self, source_client, destination_client, index, destination_index=None,
				 doc_type=None, range_field=None, config=None):
		if not index:
			raise ConfigurationError("Source index name is required")
		super().__init__(ReindexEngine(source_client, destination_client, index, destination_index or index,
									   doc_type=doc_type, range_field=range_field,
									   config=config or ReindexConfig()))


def build_target(src_host, index, dst_host=None, destination_index=None, doc_type=None,
				 range_field=None, cluster_name=None, config=None):
	config = config or ReindexConfig()
	if not index:
		raise ConfigurationError("Source index name is required")
	if not dst_host and (not destination_index or destination_index == index):
		raise ConfigurationError("Reindexing within one cluster needs a destination index different from the source")
	if doc_type:
		raise ConfigurationError(f"Type filter '{doc_type}' is not supported, Elasticsearch 8 has no mapping types")
	source_client = create_client(src_host, cluster_name, config)
	if dst_host:
		destination_client = create_client(dst_host, config=config)
		return InterClusterTarget(source_client, destination_client, index, destination_index,
								  doc_type=doc_type, range_field=range_field, config=config)
	return IntraClusterTarget(source_client, index, destination_index,
							  doc_type=doc_type, range_field=range_field, config=config)
