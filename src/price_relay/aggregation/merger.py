"""Consolidation of per-source results and response rendering.

Broadcast merge rules:

1. Results that were not found are dropped.
2. Results whose normalized name does not start with the normalized query
   are dropped, even if the source considered them a match.
3. ``name``, ``platforms`` and ``early_access`` come from the first
   surviving result (in priority order) that has a value for them.
4. Every survivor contributes one price line, listed in priority order.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Mapping, Sequence

from price_relay.core.config import DisplayConfig
from price_relay.core.exceptions import TemplateError
from price_relay.core.models import Price, SourceId, SourceResult
from price_relay.core.normalize import normalized_prefix_match

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "RUB": "₽",
    "BRL": "R$",
    "PLN": "zł",
    "CNY": "CN¥",
    "KRW": "₩",
    "INR": "₹",
}

# Currencies quoted without minor units
_ZERO_DECIMAL = frozenset({"JPY", "KRW"})


def currency_symbol(code: str) -> str:
    """Display symbol for ``code``; unknown codes are shown as-is."""
    return CURRENCY_SYMBOLS.get(code.upper(), code)


def format_amount(price: Price) -> str:
    exponent = Decimal("1") if price.currency in _ZERO_DECIMAL else Decimal("0.01")
    try:
        return str(price.amount.quantize(exponent, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # too many digits to quantize; print the amount as-is
        return format(price.amount, "f")


@dataclass(frozen=True)
class PriceEntry:
    """One source's price in a merged listing."""

    source: SourceId
    price: Price
    url: str | None = None


@dataclass(frozen=True)
class MergedListing:
    """Consolidated view of every source that matched a broadcast query."""

    name: str
    platforms: frozenset[str]
    early_access: bool
    prices: list[PriceEntry]


def merge_results(
    results: Mapping[SourceId, SourceResult],
    key: str,
    priority: Sequence[SourceId],
) -> MergedListing | None:
    """Merge broadcast results for normalized query ``key``.

    Sources missing from ``priority`` are ordered after the prioritized ones,
    in the order they appear in ``results``. Returns None when nothing
    survives filtering.
    """
    rank = {sid: i for i, sid in enumerate(priority)}
    arrival = {sid: i for i, sid in enumerate(results)}
    ordered = sorted(
        results.values(),
        key=lambda r: (rank.get(r.source, len(rank)), arrival[r.source]),
    )

    survivors = [
        r for r in ordered
        if r.found and r.name and normalized_prefix_match(r.name, key)
    ]
    if not survivors:
        return None

    name = next(r.name for r in survivors if r.name)
    platforms = next((r.platforms for r in survivors if r.platforms), frozenset())
    early_access = next((True for r in survivors if r.early_access), False)

    return MergedListing(
        name=name,
        platforms=platforms,
        early_access=early_access,
        prices=[PriceEntry(source=r.source, price=r.price, url=r.url) for r in survivors],
    )


class Formatter:
    """Renders results into response text using the configured templates."""

    def __init__(self, display: DisplayConfig | None = None) -> None:
        self._display = display or DisplayConfig()
        self._templates = self._display.templates

    def render_not_found(self, query_text: str) -> str:
        return self._render("not_found", query=query_text)

    def render_single(self, query_text: str, result: SourceResult) -> str:
        """Response for a query sent to one source."""
        if not result.found or result.price is None:
            return self.render_not_found(query_text)
        return self._render(
            "single_found",
            name=result.name,
            price=format_amount(result.price),
            currency_symbol=currency_symbol(result.price.currency),
            platforms=self._platforms(result.platforms),
            early_access_marker=self._early_access(result.early_access),
            url=self._url(result.url),
            source=result.source.display_name,
        )

    def render_broadcast(
        self,
        query_text: str,
        key: str,
        results: Mapping[SourceId, SourceResult],
        priority: Sequence[SourceId],
    ) -> str:
        """Response for a query sent to every source."""
        listing = merge_results(results, key, priority)
        if listing is None:
            return self.render_not_found(query_text)

        lines = [
            self._render(
                "price_line",
                index=i,
                price=format_amount(entry.price),
                currency_symbol=currency_symbol(entry.price.currency),
                source=entry.source.display_name,
                url=self._url(entry.url),
            )
            for i, entry in enumerate(listing.prices, start=1)
        ]
        return self._render(
            "multi_found",
            name=listing.name,
            platforms=self._platforms(listing.platforms),
            early_access_marker=self._early_access(listing.early_access),
            prices="\n".join(lines),
            query=query_text,
        )

    def render_help(self, commands: Sequence[str], bot_name: str, prefix: str) -> str:
        return self._render(
            "help",
            commands=", ".join(f"{prefix}{c}" for c in commands),
            bot_name=bot_name,
            prefix=prefix,
        )

    # --- fragments ---

    def _platforms(self, platforms: frozenset[str]) -> str:
        if not platforms:
            return ""
        return self._render("platforms_format", platforms=", ".join(sorted(platforms)))

    def _early_access(self, early_access: bool) -> str:
        return self._render("early_access_marker") if early_access else ""

    def _url(self, url: str | None) -> str:
        if not url or not self._display.show_urls:
            return ""
        return self._render("url_format", url=url)

    def _render(self, template_name: str, **values: object) -> str:
        template = getattr(self._templates, template_name)
        try:
            return template.format(**values)
        except (KeyError, IndexError, ValueError) as e:
            raise TemplateError(
                f"Template {template_name!r} could not be rendered: {e}",
                context={"template": template_name, "placeholder": str(e)},
            ) from e
