"""
Receipt model — the result contract for every external tool call.

Adapters wrap package managers, git, sdkmanager, keytool and flutter.
They never raise: the outcome of each invocation is captured in a
Receipt and the calling service decides what a failure means for the
step it is running.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Result of one external tool invocation."""

    tool: str                       # adapter name, e.g. "apt", "git"
    operation: str                  # e.g. "install", "clone"
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    return_code: int | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the invocation succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the invocation failed."""
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        tool: str,
        operation: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(tool=tool, operation=operation, status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        tool: str,
        operation: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(tool=tool, operation=operation, status="failed", error=error, **kwargs)

    @classmethod
    def skip(
        cls,
        tool: str,
        operation: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt."""
        return cls(tool=tool, operation=operation, status="skipped", output=reason, **kwargs)
