"""Shared pytest fixtures for price-relay."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from price_relay.core.config import RelayConfig, SourcesConfig
from price_relay.core.models import Price, SourceId, SourceResult


class FakeSource:
    """In-memory SourceAdapter with scriptable outcome and timing."""

    def __init__(
        self,
        source_id: SourceId,
        result: SourceResult | None = None,
        *,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
        delay: float = 0.0,
    ) -> None:
        self.source_id = source_id
        self.result = result
        self.error = error
        self.gate = gate
        self.delay = delay
        self.calls: list[str] = []
        self.closed = False

    async def search(self, text: str) -> SourceResult:
        self.calls.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.result is None:
            return SourceResult.not_found(self.source_id)
        return self.result

    async def close(self) -> None:
        self.closed = True


def found(
    source: SourceId,
    name: str,
    amount: str,
    currency: str = "USD",
    platforms: set[str] | None = None,
    early_access: bool = False,
    url: str | None = None,
) -> SourceResult:
    return SourceResult(
        source=source,
        found=True,
        name=name,
        price=Price(amount=Decimal(amount), currency=currency),
        platforms=frozenset(platforms or ()),
        early_access=early_access,
        url=url,
    )


@pytest.fixture
def fake_source():
    """Factory for FakeSource instances."""
    return FakeSource


@pytest.fixture
def make_found():
    """Factory for found SourceResults."""
    return found


@pytest.fixture
def sources_config() -> SourcesConfig:
    return SourcesConfig(search_timeout=0.5, request_timeout=2.0)


@pytest.fixture
def relay_config(sources_config: SourcesConfig) -> RelayConfig:
    return RelayConfig(sources=sources_config)


@pytest.fixture
def portal_steam() -> SourceResult:
    return found(
        SourceId.STEAM, "Portal", "9.99", "USD", {"windows"},
        url="https://store.steampowered.com/app/400/",
    )


@pytest.fixture
def portal_gog() -> SourceResult:
    return found(
        SourceId.GOG, "Portal", "8.50", "EUR", {"windows", "mac"},
        url="https://www.gog.com/game/portal",
    )
