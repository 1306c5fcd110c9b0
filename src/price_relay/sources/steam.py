"""Steam store lookup via a pre-loaded app index.

Steam has no usable search endpoint, so the adapter downloads the full
app list once (``load_index``) and matches queries against it locally with
a prefix test. The matched app id is then resolved through the store's
app-details endpoint. Until the index is loaded every query is a miss.
"""

from __future__ import annotations

import logging
from typing import Any

from price_relay.core.exceptions import IndexNotLoadedError, SourceError
from price_relay.core.models import Price, SourceId, SourceResult
from price_relay.core.normalize import starts_with_query
from price_relay.sources.http import HttpSourceAdapter, parse_amount

logger = logging.getLogger(__name__)

_APP_LIST_URL = "https://api.steampowered.com/ISteamApps/GetAppList/v2/"
_APP_DETAILS_URL = "https://store.steampowered.com/api/appdetails"
_STORE_APP_URL = "https://store.steampowered.com/app/{app_id}/"

# Steam genre id for Early Access titles
_EARLY_ACCESS_GENRE = "70"


class SteamSource(HttpSourceAdapter):
    """Steam store prices, matched through a locally held name → app id index."""

    source_id = SourceId.STEAM

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._index: list[tuple[str, int]] | None = None

    @property
    def index_loaded(self) -> bool:
        return self._index is not None

    @property
    def index_size(self) -> int:
        return len(self._index) if self._index is not None else 0

    async def load_index(self) -> int:
        """Download the app list and build the index. Returns the entry count.

        Runs once; later calls return the existing size. A failed download is
        logged and leaves the index unloaded.
        """
        if self._index is not None:
            return len(self._index)

        try:
            payload = await self._get_json(_APP_LIST_URL)
            apps = payload["applist"]["apps"]
            if not isinstance(apps, list):
                raise self._malformed("'applist.apps' is not a list")
        except (SourceError, KeyError, TypeError) as e:
            logger.warning("Steam app index failed to load: %s", e)
            return 0

        index: list[tuple[str, int]] = []
        for app in apps:
            if not isinstance(app, dict):
                continue
            name = str(app.get("name") or "").strip()
            app_id = app.get("appid")
            if name and isinstance(app_id, int):
                index.append((name, app_id))

        self._index = index
        logger.info("Steam app index loaded with %d entries", len(index))
        return len(index)

    def lookup_app_id(self, text: str) -> int | None:
        """First app in index order whose name starts with ``text``.

        Raises:
            IndexNotLoadedError: The index has not been loaded yet.
        """
        if self._index is None:
            raise IndexNotLoadedError(
                "Steam app index is not loaded",
                context={"source": str(self.source_id)},
            )
        for name, app_id in self._index:
            if starts_with_query(name, text):
                return app_id
        return None

    async def _search(self, text: str) -> SourceResult:
        try:
            app_id = self.lookup_app_id(text)
        except IndexNotLoadedError:
            logger.debug("Steam index not loaded yet, treating %r as a miss", text)
            return SourceResult.not_found(self.source_id)
        if app_id is None:
            return SourceResult.not_found(self.source_id)

        payload = await self._get_json(
            _APP_DETAILS_URL,
            params={"appids": app_id, "cc": self._config.country_code},
        )
        entry = payload.get(str(app_id)) if isinstance(payload, dict) else None
        if not isinstance(entry, dict):
            raise self._malformed(f"no entry for app {app_id}")
        if not entry.get("success"):
            return SourceResult.not_found(self.source_id)

        data = entry.get("data")
        if not isinstance(data, dict):
            raise self._malformed(f"'data' for app {app_id} is not an object")
        return self._parse_details(app_id, data)

    def _parse_details(self, app_id: int, data: dict) -> SourceResult:
        overview = data.get("price_overview")
        if isinstance(overview, dict):
            amount = parse_amount(overview.get("final"), minor_units=True)
            currency = overview.get("currency") or self._config.default_currency
        elif data.get("is_free"):
            amount = parse_amount(0)
            currency = self._config.default_currency
        else:
            amount = None
            currency = None

        name = str(data.get("name") or "").strip()
        if amount is None or not name:
            return SourceResult.not_found(self.source_id)

        platforms = data.get("platforms")
        if not isinstance(platforms, dict):
            platforms = {}
        genres = data.get("genres")
        if not isinstance(genres, list):
            genres = []
        early_access = any(
            isinstance(g, dict) and str(g.get("id")) == _EARLY_ACCESS_GENRE
            for g in genres
        )

        return SourceResult(
            source=self.source_id,
            found=True,
            name=name,
            price=Price(amount=amount, currency=currency),
            platforms=frozenset(p for p, ok in platforms.items() if ok),
            early_access=early_access,
            url=_STORE_APP_URL.format(app_id=app_id),
        )
