"""Change notifications emitted by the store.

Every mutation produces one :class:`ChangeEvent`.  Per-key listeners receive
its ``(action, old_value, new_value)`` triple; store-wide observers receive
the event itself.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyobstore._missing import MISSING


class ChangeAction(StrEnum):
    SET = "set"
    REMOVE = "remove"


class ChangeEvent(BaseModel):
    """A single committed change to one key."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Key that changed")
    action: ChangeAction
    old_value: Any = Field(default=MISSING, description="Previous value, MISSING if the key was unset")
    new_value: Any = Field(default=MISSING, description="Current value, MISSING after a removal")
    changed: bool = Field(default=True, description="False for a same-value set")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("key")
    @classmethod
    def _require_key(cls, value: str) -> str:
        if not value:
            raise ValueError("key must be non-empty")
        return value

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def as_args(self) -> tuple[ChangeAction, Any, Any]:
        """Positional arguments handed to per-key listeners."""
        return self.action, self.old_value, self.new_value
