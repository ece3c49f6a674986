import logging

from elastic_transport import TransportError
from elasticsearch import ApiError, Elasticsearch

from reindexer.config import ReindexConfig
from reindexer.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 9200


def split_hosts(hosts):
	"""Turn ``"es1,es2:9201"`` into full URLs."""
	urls = []
	for host in (hosts or "").split(","):
		host = host.strip()
		if not host:
			continue
		if "://" not in host:
			host = f"http://{host}"
		if host.count(":") < 2:
			host = f"{host}:{DEFAULT_PORT}"
		urls.append(host)
	if not urls:
		raise ConfigurationError("At least one Elasticsearch host is required")
	return urls


def create_client(hosts, cluster_name=None, config=None):
	config = config or ReindexConfig()
	urls = split_hosts(hosts)
	for url in urls:
		logger.info("Adding new '%s' host.", url)

	kwargs = {"request_timeout": config.request_timeout}
	if config.api_key:
		kwargs["api_key"] = config.api_key
	elif config.username and config.password:
		kwargs["basic_auth"] = (config.username, config.password)

	client = Elasticsearch(urls, **kwargs)
	if cluster_name:
		try:
			verify_cluster(client, cluster_name)
		except ConfigurationError:
			client.close()
			raise
	return client


def verify_cluster(client, cluster_name):
	try:
		info = client.info()
	except (ApiError, TransportError) as e:
		raise ConfigurationError(f"Could not reach cluster '{cluster_name}': {e}") from e
	actual = info["cluster_name"]
	if actual != cluster_name:
		raise ConfigurationError(f"Connected to cluster '{actual}', expected '{cluster_name}'")
	return actual
