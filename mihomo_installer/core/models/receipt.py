"""
Stage receipts — the outcome of one install stage.

A fatal stage raises a ProvisionError. Everything else, including
soft failures, comes back as a receipt so the report can show it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StageReceipt(BaseModel):
    """Result of one installer stage."""

    stage: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, stage: str, output: str = "", **kwargs: Any) -> StageReceipt:
        """Create a success receipt."""
        return cls(stage=stage, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, stage: str, error: str, **kwargs: Any) -> StageReceipt:
        """Create a failure receipt (soft failure, the run continues)."""
        return cls(stage=stage, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, stage: str, reason: str = "", **kwargs: Any) -> StageReceipt:
        """Create a skip receipt."""
        return cls(stage=stage, status="skipped", output=reason, **kwargs)
