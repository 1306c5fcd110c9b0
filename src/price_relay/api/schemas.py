"""API-specific request/response schemas (Pydantic v2)."""

from __future__ import annotations

from pydantic import BaseModel, Field


# -- Error --


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    error: str
    detail: str | None = None


# -- Messages --


class MessageRequest(BaseModel):
    """One line of chat text forwarded by a chat bridge."""

    text: str = Field(..., max_length=2000)
    reply_to: str | None = None


class MessageResponse(BaseModel):
    """The bot's answer, if the line was addressed to it."""

    handled: bool
    reply_to: str | None = None
    response: str | None = None


# -- Sources --


class SourceResponse(BaseModel):
    """A single-source command the bot understands."""

    command: str
    display_name: str
    usage: str
    index_loaded: bool | None = None


# -- Health --


class HealthResponse(BaseModel):
    """System health check response."""

    status: str
    version: str
    sources: list[str]
    cache_entries: int
    index_loaded: dict[str, bool]
