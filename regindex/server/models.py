"""Pydantic models for the regindex HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TagStatusRequest(BaseModel):
    """PATCH body: set the status of one tag."""

    repo: str = Field(..., min_length=1)
    tag: str = Field(..., min_length=1)
    status: str


class IndexRecordResponse(BaseModel):
    """One entry of a search page."""

    repository: str
    digest: str
    url: str
    updated_at: str


class EventsAppliedResponse(BaseModel):
    """Result of delivering a notification envelope."""

    applied: int = 0
