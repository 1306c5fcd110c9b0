"""GOG catalog search."""

from __future__ import annotations

import logging
from typing import Any

from price_relay.core.models import Price, SourceId, SourceResult
from price_relay.sources.base import select_candidate
from price_relay.sources.http import HttpSourceAdapter, parse_amount

logger = logging.getLogger(__name__)

_SEARCH_URL = "https://embed.gog.com/games/ajax/filtered"
_STORE_BASE = "https://www.gog.com"

# worksOn keys → platform names
_PLATFORM_MAP: dict[str, str] = {
    "Windows": "windows",
    "Mac": "mac",
    "Linux": "linux",
}


class GogSource(HttpSourceAdapter):
    """Searches the GOG catalog's filtered-products endpoint."""

    source_id = SourceId.GOG

    async def _search(self, text: str) -> SourceResult:
        payload = await self._get_json(
            _SEARCH_URL, params={"mediaType": "game", "search": text}
        )
        if not isinstance(payload, dict):
            raise self._malformed(f"expected object, got {type(payload).__name__}")

        products = payload.get("products") or []
        if not isinstance(products, list):
            raise self._malformed("'products' is not a list")

        candidates = [c for c in (self._parse_product(p) for p in products) if c]
        chosen = select_candidate(candidates, text, name=lambda r: r.name or "")
        if chosen is None:
            logger.debug("GOG has no candidates for %r", text)
            return SourceResult.not_found(self.source_id)
        return chosen

    def _parse_product(self, product: Any) -> SourceResult | None:
        """Convert one GOG product into a found result, or None if unusable."""
        if not isinstance(product, dict):
            return None
        title = product.get("title")
        price_info = product.get("price") or {}
        if not title or not isinstance(price_info, dict):
            return None

        amount = parse_amount(price_info.get("finalAmount", price_info.get("amount")))
        if amount is None:
            return None
        currency = price_info.get("currency") or self._config.default_currency

        works_on = product.get("worksOn")
        if not isinstance(works_on, dict):
            works_on = {}
        platforms = {
            name for key, name in _PLATFORM_MAP.items() if works_on.get(key)
        }

        url = product.get("url")
        if not isinstance(url, str):
            url = None
        if url and url.startswith("/"):
            url = f"{_STORE_BASE}{url}"

        return SourceResult(
            source=self.source_id,
            found=True,
            name=str(title).strip(),
            price=Price(amount=amount, currency=currency),
            platforms=frozenset(platforms),
            early_access=bool(product.get("isInDevelopment")),
            url=url or None,
        )
