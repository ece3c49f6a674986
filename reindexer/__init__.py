from reindexer.config import ReindexConfig
from reindexer.engine import ReindexEngine
from reindexer.errors import ConfigurationError, CursorError, ReindexError
from reindexer.models import ReindexResult, TimeWindow
from reindexer.targets import InterClusterTarget, IntraClusterTarget, ReindexTarget

__all__ = [
	"ReindexConfig",
	"ReindexEngine",
	"ReindexError",
	"ConfigurationError",
	"CursorError",
	"ReindexResult",
	"TimeWindow",
	"ReindexTarget",
	"IntraClusterTarget",
	"InterClusterTarget",
]
