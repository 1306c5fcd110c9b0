"""Humble Store search."""

from __future__ import annotations

import logging
from typing import Any

from price_relay.core.models import Price, SourceId, SourceResult
from price_relay.sources.base import select_candidate
from price_relay.sources.http import HttpSourceAdapter, parse_amount

logger = logging.getLogger(__name__)

_SEARCH_URL = "https://www.humblebundle.com/store/api/search"
_STORE_BASE = "https://www.humblebundle.com/store/"


class HumbleSource(HttpSourceAdapter):
    """Searches the Humble Store catalog API."""

    source_id = SourceId.HUMBLE

    async def _search(self, text: str) -> SourceResult:
        payload = await self._get_json(
            _SEARCH_URL, params={"search": text, "request": 1}
        )
        if not isinstance(payload, dict):
            raise self._malformed(f"expected object, got {type(payload).__name__}")

        results = payload.get("results") or []
        if not isinstance(results, list):
            raise self._malformed("'results' is not a list")

        candidates = [c for c in (self._parse_item(item) for item in results) if c]
        chosen = select_candidate(candidates, text, name=lambda r: r.name or "")
        if chosen is None:
            logger.debug("Humble has no candidates for %r", text)
            return SourceResult.not_found(self.source_id)
        return chosen

    def _parse_item(self, item: Any) -> SourceResult | None:
        if not isinstance(item, dict):
            return None
        name = item.get("human_name")
        price_info = item.get("current_price")
        if not name or not isinstance(price_info, dict):
            return None

        amount = parse_amount(price_info.get("amount"))
        if amount is None:
            return None
        currency = price_info.get("currency") or self._config.default_currency

        platforms = item.get("platforms") or []
        if not isinstance(platforms, list):
            platforms = []

        markers = set(item.get("delivery_methods") or []) | set(
            item.get("content_types") or []
        )

        slug = item.get("human_url")
        return SourceResult(
            source=self.source_id,
            found=True,
            name=str(name).strip(),
            price=Price(amount=amount, currency=currency),
            platforms=frozenset(str(p) for p in platforms),
            early_access="early_access" in markers,
            url=f"{_STORE_BASE}{slug}" if slug else None,
        )
