import argparse
import logging
import signal
import sys
import threading

from reindexer.config import ReindexConfig
from reindexer.errors import ConfigurationError, CursorError
from reindexer.targets import build_target
from reindexer.windows import parse_date

logger = logging.getLogger(__name__)


def build_parser():
	parser = argparse.ArgumentParser(prog="reindexer", description="Copy documents between Elasticsearch indices, one time window at a time")
	parser.add_argument("-sh", "--src-host", required=True, help="Comma separated list of source Elasticsearch hosts")
	parser.add_argument("-dh", "--dst-host", help="Comma separated list of destination hosts. Omit to reindex within the source cluster")
	parser.add_argument("-i", "--index", required=True, help="Name of the source index")
	parser.add_argument("-d", "--destination", help="Name of the destination index")
	parser.add_argument("-t", "--type", dest="doc_type", help="Document type filter. Not supported by Elasticsearch 8, kept for error reporting")
	parser.add_argument("-f", "--field", help="Date field used to split the copy into time windows")
	parser.add_argument("-sd", "--start-date", help="Start date in yyyyMMdd format, e.g. 20150701, midnight UTC (inclusive)")
	parser.add_argument("-ed", "--end-date", help="End date in yyyyMMdd format, e.g. 20150711, midnight UTC (exclusive). Defaults to the start of tomorrow, UTC")
	parser.add_argument("-bs", "--batch-size", type=int, help="How many documents are pulled and written per request (default 500)")
	parser.add_argument("-tbs", "--temp-batch-size", type=int, help="Temporal window size in days (default 1)")
	parser.add_argument("-cn", "--cluster-name", help="Expected name of the source Elasticsearch cluster")
	parser.add_argument("--estimate-only", action="store_true", help="Only count the documents that would be copied")
	parser.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
	return parser


def resolve_dates(args):
	if not args.field:
		if args.start_date or args.end_date:
			logger.warning("No --field given, ignoring dates and copying the whole index")
		return None, None
	start = parse_date(args.start_date)
	if start is None:
		raise ConfigurationError("--start-date is required when --field is given")
	return start, parse_date(args.end_date)


def install_stop_handlers(stop_event):
	def handle_exit(sig, frame):
		print("\nInterrupted. Finishing the current batch before stopping.")
		stop_event.set()

	signal.signal(signal.SIGINT, handle_exit)
	signal.signal(signal.SIGTERM, handle_exit)


def main(argv=None):
	args = build_parser().parse_args(argv)
	logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
	logger.info("Started re-indexing process")

	try:
		config = ReindexConfig.from_env(batch_size=args.batch_size, window_days=args.temp_batch_size)
		start, end = resolve_dates(args)
		target = build_target(
			args.src_host,
			args.index,
			dst_host=args.dst_host,
			destination_index=args.destination,
			doc_type=args.doc_type,
			range_field=args.field,
			cluster_name=args.cluster_name,
			config=config,
		)
	except ConfigurationError as e:
		logger.error("%s", e)
		return 2

	with target:
		return execute(target, args, config, start, end)


def execute(target, args, config, start, end):
	if args.estimate_only:
		try:
			count = target.estimate(target.window(start, end))
		except ConfigurationError as e:
			logger.error("%s", e)
			return 2
		except CursorError as e:
			logger.error("%s", e)
			return 1
		print(f"{count} documents to reindex")
		return 0

	stop_event = threading.Event()
	install_stop_handlers(stop_event)
	try:
		result = target.run(start, end, config.window_days, stop_event=stop_event)
	except ConfigurationError as e:
		logger.error("%s", e)
		return 2
	except CursorError as e:
		logger.error("%s", e)
		if e.result is not None:
			print(e.result.summary())
		return 1

	print(result.summary())
	logger.info("Reindexing finished")
	return 1 if result.has_failures else 0


if __name__ == "__main__":
	sys.exit(main())
