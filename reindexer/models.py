from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TimeWindow(BaseModel):
	model_config = ConfigDict(frozen=True)

	start: Optional[datetime] = None
	end: Optional[datetime] = None

	@model_validator(mode="after")
	def check_order(self):
		if self.start is not None and self.end is not None and self.start > self.end:
			raise ValueError("window start must not be after its end")
		return self

	@property
	def unbounded(self) -> bool:
		return self.start is None and self.end is None

	def __str__(self):
		if self.unbounded:
			return "[*, *)"
		return f"[{self.start}, {self.end})"


def _metadata_value(hit, name):
	value = hit.get(name)
	if value is None:
		value = (hit.get("fields") or {}).get(name)
	if isinstance(value, list):
		value = value[0] if value else None
	return None if value is None else str(value)


class SourceDocument(BaseModel):
	id: str
	source: Dict[str, Any] = Field(default_factory=dict)
	parent: Optional[str] = None
	timestamp: Optional[str] = None

	@classmethod
	def from_hit(cls, hit, parent_field, timestamp_field):
		return cls(
			id=str(hit["_id"]),
			source=hit.get("_source") or {},
			parent=_metadata_value(hit, parent_field),
			timestamp=_metadata_value(hit, timestamp_field),
		)


class BulkFailure(BaseModel):
	document_id: Optional[str] = None
	reason: str
	kind: Literal["item", "transport"] = "item"

	def __str__(self):
		if self.document_id is None:
			return f"{self.kind} failure: {self.reason}"
		return f"{self.kind} failure for {self.document_id}: {self.reason}"


class BatchOutcome(BaseModel):
	attempted: int = 0
	failed: List[BulkFailure] = Field(default_factory=list)
	transport_error: Optional[str] = None

	@property
	def written(self) -> int:
		if self.transport_error is not None:
			return 0
		return self.attempted - len(self.failed)


class ReindexResult(BaseModel):
	documents_found: int = 0
	documents_written: int = 0
	batch_failures: List[BulkFailure] = Field(default_factory=list)
	windows_processed: int = 0
	bulk_requests: int = 0
	status: Literal["completed", "no_documents", "cancelled", "aborted"] = "completed"
	elapsed: float = 0.0

	def add_batch(self, outcome: BatchOutcome):
		self.documents_found += outcome.attempted
		self.documents_written += outcome.written
		if outcome.attempted:
			self.bulk_requests += 1
		self.batch_failures.extend(outcome.failed)

	@property
	def has_failures(self) -> bool:
		return bool(self.batch_failures) or self.status == "aborted"

	def summary(self):
		lines = [
			f"Status: {self.status}",
			f"Documents found: {self.documents_found}",
			f"Documents written: {self.documents_written}",
			f"Windows processed: {self.windows_processed}",
			f"Bulk requests: {self.bulk_requests}",
			f"Failures: {len(self.batch_failures)}",
			f"Completed in {self.elapsed:.2f}s",
		]
		for failure in self.batch_failures:
			lines.append(f"  - {failure}")
		return "\n".join(lines)
