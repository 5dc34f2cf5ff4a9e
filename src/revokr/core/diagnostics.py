"""Diagnostics sink for recoverable, per-item problems."""

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field


class Diagnostic(BaseModel):
    """A single recorded diagnostic."""

    level: int = Field(description="logging level of the diagnostic")
    message: str = Field(description="Human-readable message")
    context: dict[str, Any] = Field(
        default_factory=dict, description="Item the diagnostic refers to"
    )

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = " ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class Diagnostics:
    """Collects diagnostics raised while processing inputs.

    Every record is kept on the sink and forwarded to a logger, so callers
    can inspect what was skipped without capturing process output.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize diagnostics sink.

        Args:
            logger: Logger records are forwarded to (default: "revokr")
        """
        self.logger = logger or logging.getLogger("revokr")
        self._records: list[Diagnostic] = []

    def _record(self, level: int, message: str, context: dict[str, Any]) -> None:
        record = Diagnostic(level=level, message=message, context=context)
        self._records.append(record)
        self.logger.log(level, "%s", record)

    def debug(self, message: str, **context: Any) -> None:
        self._record(logging.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._record(logging.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._record(logging.WARNING, message, context)

    @property
    def records(self) -> list[Diagnostic]:
        """All recorded diagnostics, oldest first."""
        return list(self._records)

    @property
    def warnings(self) -> list[Diagnostic]:
        """Recorded diagnostics at WARNING level or above."""
        return [r for r in self._records if r.level >= logging.WARNING]

    def clear(self):
        """Forget all recorded diagnostics."""
        self._records.clear()
