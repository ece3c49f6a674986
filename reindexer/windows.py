from datetime import datetime, timedelta, timezone

from reindexer.errors import ConfigurationError
from reindexer.models import TimeWindow

DATE_FORMAT = "%Y%m%d"


def parse_date(value):
	"""Parse a ``yyyyMMdd`` date, e.g. 20150701, as midnight UTC."""
	if value is None or not value.strip():
		return None
	try:
		return datetime.strptime(value.strip(), DATE_FORMAT).replace(tzinfo=timezone.utc)
	except ValueError as e:
		raise ConfigurationError(f"Invalid date '{value}', expected yyyyMMdd") from e


def resolve_end(end=None, now=None):
	if end is not None:
		return end
	now = now or datetime.now(timezone.utc)
	return now.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)


class WindowPlanner:

	def __init__(self, window_days=1):
		if window_days < 1:
			raise ConfigurationError("Temporal window size must be at least one day")
		self.window_days = window_days

	def plan(self, start, end=None, now=None):
		if start is None:
			yield TimeWindow()
			return

		end = resolve_end(end, now)
		if start > end:
			raise ConfigurationError(f"Start date {start} is after end date {end}")

		step = timedelta(days=self.window_days)
		while end > start:
			window = TimeWindow(start=max(end - step, start), end=end)
			yield window
			end = window.start
