"""Pluggable price sources.

Adding a new source:
1. Subclass ``HttpSourceAdapter`` (or implement ``SourceAdapter`` directly).
2. Add a ``SourceId`` member and register a factory with ``registry``.
"""

from price_relay.core.models import SourceId
from price_relay.sources.base import (
    SourceAdapter,
    SourceFactory,
    SourceRegistry,
    registry,
    select_candidate,
)
from price_relay.sources.gog import GogSource
from price_relay.sources.http import HttpSourceAdapter, parse_amount
from price_relay.sources.humble import HumbleSource
from price_relay.sources.steam import SteamSource

registry.register(SourceId.STEAM, SteamSource)
registry.register(SourceId.GOG, GogSource)
registry.register(SourceId.HUMBLE, HumbleSource)

__all__ = [
    # Protocol + registry
    "SourceAdapter",
    "SourceFactory",
    "SourceRegistry",
    "registry",
    "select_candidate",
    # HTTP base
    "HttpSourceAdapter",
    "parse_amount",
    # Built-in sources
    "SteamSource",
    "GogSource",
    "HumbleSource",
]
