"""Pydantic models for messages, window snapshots and API request bodies."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    seq: int
    content: Any = None
    created_at: float = Field(default=0.0, alias="createdAt")
    local_id: str | None = Field(default=None, alias="localId")
    status: str | None = None


class WindowSnapshot(BaseModel):
    messages: list[Message] = Field(default_factory=list)
    pending: list[Message] = Field(default_factory=list)
    pending_count: int = 0
    has_pending_permission_prompt: bool = False
    at_bottom: bool = False
    dropped_count: int = 0
    version: int = 0


class IngestRequest(BaseModel):
    messages: list[Message] = Field(default_factory=list, max_length=10_000)


class AtBottomUpdate(BaseModel):
    at_bottom: bool


class PermissionIdsUpdate(BaseModel):
    ids: list[str] = Field(default_factory=list)
