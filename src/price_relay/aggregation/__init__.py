"""Fan-out, merge, and caching of multi-source price queries."""

from price_relay.aggregation.cache import ResponseCache
from price_relay.aggregation.merger import (
    CURRENCY_SYMBOLS,
    Formatter,
    MergedListing,
    PriceEntry,
    currency_symbol,
    format_amount,
    merge_results,
)
from price_relay.aggregation.session import AggregationSession, MergeCallback

__all__ = [
    "AggregationSession",
    "MergeCallback",
    "ResponseCache",
    "Formatter",
    "MergedListing",
    "PriceEntry",
    "merge_results",
    "currency_symbol",
    "format_amount",
    "CURRENCY_SYMBOLS",
]
