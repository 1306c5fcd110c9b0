"""Dependency injection for FastAPI routes."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from price_relay.core.config import RelayConfig
from price_relay.router import QueryRouter


@dataclass
class AppState:
    """Shared application state, attached to app.state during lifespan."""

    config: RelayConfig
    router: QueryRouter


def get_config(request: Request) -> RelayConfig:
    """Dependency: retrieve config."""
    return request.app.state.app_state.config


def get_router(request: Request) -> QueryRouter:
    """Dependency: retrieve the query router."""
    return request.app.state.app_state.router
