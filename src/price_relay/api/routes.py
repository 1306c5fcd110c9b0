"""FastAPI route definitions for the price-relay webhook."""

from __future__ import annotations

from fastapi import APIRouter, Depends

import price_relay
from price_relay.api.deps import get_config, get_router
from price_relay.api.schemas import (
    ErrorResponse,
    HealthResponse,
    MessageRequest,
    MessageResponse,
    SourceResponse,
)
from price_relay.core.config import RelayConfig
from price_relay.core.models import InboundMessage
from price_relay.router import QueryRouter

router = APIRouter()


# -- Health --


@router.get("/health", response_model=HealthResponse)
async def health_check(query_router: QueryRouter = Depends(get_router)):
    """System health and cache size."""
    return HealthResponse(
        status="ok",
        version=price_relay.__version__,
        sources=query_router.commands,
        cache_entries=len(query_router.cache),
        index_loaded=query_router.index_status(),
    )


# -- Sources --


@router.get("/sources", response_model=list[SourceResponse])
async def list_sources(
    config: RelayConfig = Depends(get_config),
    query_router: QueryRouter = Depends(get_router),
):
    """Single-source commands, in priority order."""
    prefix = config.bot.command_prefix
    index = query_router.index_status()
    return [
        SourceResponse(
            command=str(source.source_id),
            display_name=source.source_id.display_name,
            usage=f"{prefix}{source.source_id} <title>",
            index_loaded=index.get(str(source.source_id)),
        )
        for source in query_router.sources
    ]


# -- Messages --


@router.post(
    "/messages",
    response_model=MessageResponse,
    responses={500: {"model": ErrorResponse}},
)
async def post_message(
    body: MessageRequest,
    query_router: QueryRouter = Depends(get_router),
):
    """Route one chat line. Lines not addressed to the bot come back unhandled."""
    response = await query_router.handle(
        InboundMessage(text=body.text, reply_to=body.reply_to)
    )
    return MessageResponse(
        handled=response is not None,
        reply_to=body.reply_to,
        response=response,
    )
