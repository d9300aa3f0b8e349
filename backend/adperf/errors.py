"""
Error types shared by ingestion, aggregation and the performance store.
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from adperf.schemas.performance import UpsertResult


class AdPerfError(Exception):
    """Base class for ad performance errors."""


class MalformedInputError(AdPerfError):
    """Raw upload could not be read as delimited text at all."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class StoreUnavailableError(AdPerfError):
    """The performance store could not be reached or rejected the whole batch."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class PartialWriteError(AdPerfError):
    """Some rows of a batch were written and others were rejected."""

    def __init__(self, result: "UpsertResult"):
        super().__init__(
            f"{result.written} rows written, {result.rejected} rejected: "
            + "; ".join(result.errors)
        )
        self.result = result


@dataclass(frozen=True)
class RowRejected:
    """A CSV row dropped because a required identity field was empty."""
    line_number: int
    missing_fields: List[str] = field(default_factory=list)

    @property
    def reason(self) -> str:
        return f"line {self.line_number}: missing {', '.join(self.missing_fields)}"
