import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from reindexer.errors import ConfigurationError

DEFAULT_HOST = "http://localhost:9200"
BATCH_SIZE = 500
WINDOW_DAYS = 1
SCROLL_TIMEOUT = 60
REQUEST_TIMEOUT = 120
PARENT_FIELD = "_routing"
TIMESTAMP_FIELD = "_timestamp"


class ReindexConfig(BaseModel):
	default_host: str = DEFAULT_HOST
	username: Optional[str] = None
	password: Optional[str] = None
	api_key: Optional[str] = None
	batch_size: int = BATCH_SIZE
	window_days: int = WINDOW_DAYS
	scroll_timeout: int = SCROLL_TIMEOUT
	request_timeout: int = REQUEST_TIMEOUT
	parent_field: str = PARENT_FIELD
	timestamp_field: str = TIMESTAMP_FIELD

	@field_validator("batch_size", "window_days", "scroll_timeout", "request_timeout")
	@classmethod
	def must_be_positive(cls, value):
		if value < 1:
			raise ValueError("must be a positive integer")
		return value

	@property
	def keep_alive(self) -> str:
		return f"{self.scroll_timeout}s"

	@classmethod
	def from_env(cls, **overrides):
		load_dotenv()
		values = {
			"default_host": os.environ.get("ES_URL", DEFAULT_HOST),
			"username": os.environ.get("ES_USERNAME"),
			"password": os.environ.get("ES_PASSWORD"),
			"api_key": os.environ.get("ES_API_KEY"),
			"batch_size": os.environ.get("REINDEX_BATCH_SIZE", BATCH_SIZE),
			"window_days": os.environ.get("REINDEX_WINDOW_DAYS", WINDOW_DAYS),
			"scroll_timeout": os.environ.get("REINDEX_SCROLL_TIMEOUT", SCROLL_TIMEOUT),
			"request_timeout": os.environ.get("REINDEX_REQUEST_TIMEOUT", REQUEST_TIMEOUT),
			"parent_field": os.environ.get("REINDEX_PARENT_FIELD", PARENT_FIELD),
			"timestamp_field": os.environ.get("REINDEX_TIMESTAMP_FIELD", TIMESTAMP_FIELD),
		}
		values.update({k: v for k, v in overrides.items() if v is not None})
		try:
			return cls(**values)
		except ValidationError as e:
			raise ConfigurationError(f"Invalid configuration: {e}") from e
