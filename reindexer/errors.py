class ReindexError(Exception):
	pass


class ConfigurationError(ReindexError):
	"""Invalid dates, locations or options. Raised before any document is read."""


class CursorError(ReindexError):
	"""The scroll over the source index could not be opened or advanced.

	``result`` holds the counts accumulated before the failure.
	"""

	def __init__(self, message, result=None):
		super().__init__(message)
		self.result = result
