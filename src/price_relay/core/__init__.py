"""price_relay.core — Foundation types, config, normalization, and exceptions."""

from price_relay.core.config import (
    APIConfig,
    BotConfig,
    DisplayConfig,
    RelayConfig,
    SourcesConfig,
    TemplatesConfig,
    load_config,
)
from price_relay.core.exceptions import (
    ConfigError,
    IndexNotLoadedError,
    MalformedResponseError,
    PriceRelayError,
    SourceError,
    SourceFetchError,
    TemplateError,
)
from price_relay.core.models import (
    CacheKey,
    CommandKind,
    CommandWord,
    InboundMessage,
    Price,
    Query,
    SearchStatus,
    SourceId,
    SourceResult,
)
from price_relay.core.normalize import (
    normalize,
    normalized_prefix_match,
    starts_with_query,
)

__all__ = [
    # Type aliases
    "CacheKey",
    "CommandWord",
    # Enums
    "CommandKind",
    "SearchStatus",
    "SourceId",
    # Models
    "InboundMessage",
    "Price",
    "Query",
    "SourceResult",
    # Normalization
    "normalize",
    "normalized_prefix_match",
    "starts_with_query",
    # Config
    "RelayConfig",
    "BotConfig",
    "SourcesConfig",
    "DisplayConfig",
    "TemplatesConfig",
    "APIConfig",
    "load_config",
    # Exceptions
    "PriceRelayError",
    "ConfigError",
    "TemplateError",
    "SourceError",
    "SourceFetchError",
    "MalformedResponseError",
    "IndexNotLoadedError",
]
