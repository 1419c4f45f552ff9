"""
Pydantic data models for the relay.

A Record is immutable once built; the store owns the only mutable part of its
lifecycle (the one-way Pending to Done transition).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecordStatus(str, Enum):
    """Lifecycle status of a stored record."""

    PENDING = "pending"
    DONE = "done"


class Record(BaseModel):
    """One ingestion event captured from the controller."""

    model_config = ConfigDict(frozen=True)

    captured_at: datetime
    payload: Dict[str, Any]
    status: RecordStatus = RecordStatus.PENDING
    id: Optional[int] = None  # assigned by the store on insert

    @field_validator("captured_at")
    @classmethod
    def _require_tz(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("captured_at must be timezone-aware")
        return v

    @field_validator("payload")
    @classmethod
    def _require_payload(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if not v:
            raise ValueError("payload must not be empty")
        return v


class FuseSubmission(BaseModel):
    """Request body accepted by the Fuse submit endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    record_id: int = Field(alias="recordId")
    captured_at: datetime = Field(alias="capturedAt")
    host_name: str = Field(alias="hostName")
    server_name: str = Field(alias="serverName")
    data: Dict[str, Any]

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
