"""price-relay: concurrent multi-store game price lookups for chat."""

__version__ = "0.1.0"
