"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from price_relay.api.deps import AppState
from price_relay.api.routes import router
from price_relay.core.config import RelayConfig, load_config
from price_relay.core.exceptions import ConfigError, PriceRelayError
from price_relay.router import QueryRouter


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    config = app.state._pending_config or load_config()
    query_router = app.state._pending_router or QueryRouter(config)
    await query_router.startup()

    app.state.app_state = AppState(config=config, router=query_router)

    yield

    await query_router.close()


def create_app(
    config: RelayConfig | None = None,
    query_router: QueryRouter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    import price_relay

    app = FastAPI(
        title="price-relay",
        description="Concurrent multi-store game price lookups for chat bridges",
        version=price_relay.__version__,
        lifespan=lifespan,
    )

    # Stash config so lifespan can retrieve it
    app.state._pending_config = config
    app.state._pending_router = query_router

    app.include_router(router, prefix="/api")

    @app.exception_handler(PriceRelayError)
    async def relay_exception_handler(request: Request, exc: PriceRelayError):
        status_map = {
            ConfigError: 400,
        }
        status = status_map.get(type(exc), 500)
        return JSONResponse(
            status_code=status,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    return app
