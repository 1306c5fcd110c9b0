"""Shared async HTTP plumbing for price sources."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from price_relay.core.config import SourcesConfig
from price_relay.core.exceptions import (
    MalformedResponseError,
    SourceError,
    SourceFetchError,
)
from price_relay.core.models import SearchStatus, SourceId, SourceResult
from price_relay.core.normalize import normalize

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


class HttpSourceAdapter:
    """Base class for sources reached over HTTP.

    Subclasses implement ``_search``; ``search`` wraps it so every
    adapter-local failure degrades to a not-found result. No retries.

    Use via ``async with SomeSource(config) as source:`` or call ``close()``.
    """

    source_id: SourceId

    def __init__(
        self,
        config: SourcesConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": config.user_agent},
            timeout=httpx.Timeout(config.request_timeout),
            follow_redirects=True,
        )

    async def __aenter__(self) -> HttpSourceAdapter:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client. Called automatically by __aexit__."""
        await self._client.aclose()

    async def search(self, text: str) -> SourceResult:
        """Search this source for ``text``. Always resolves."""
        text = text.strip()
        if not normalize(text):
            return SourceResult.not_found(self.source_id)
        try:
            return await self._search(text)
        except (SourceError, httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "Source '%s' failed for %r: %s: %s",
                self.source_id, text, type(e).__name__, e,
            )
            return SourceResult.not_found(self.source_id, status=SearchStatus.ERROR)

    async def _search(self, text: str) -> SourceResult:
        raise NotImplementedError

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``url`` and decode its JSON body.

        Raises:
            SourceFetchError: Transport failure or non-200 status.
            MalformedResponseError: Body is not JSON.
        """
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise SourceFetchError(
                f"Request to {self.source_id} failed: {e}",
                context={"source": str(self.source_id), "url": url, "status_code": None},
            ) from e

        if response.status_code != 200:
            raise SourceFetchError(
                f"HTTP {response.status_code} from {url}",
                context={
                    "source": str(self.source_id),
                    "url": url,
                    "status_code": response.status_code,
                },
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Undecodable JSON from {url}",
                context={"source": str(self.source_id), "url": url, "reason": str(e)},
            ) from e

    def _malformed(self, reason: str) -> MalformedResponseError:
        return MalformedResponseError(
            f"Unexpected payload from {self.source_id}: {reason}",
            context={"source": str(self.source_id), "reason": reason},
        )


def parse_amount(value: Any, minor_units: bool = False) -> Decimal | None:
    """Parse a provider price into a Decimal.

    Returns None for anything that cannot be shown as a price: non-numbers,
    negative or non-finite values, and amounts too large to quantize to cents.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    if minor_units:
        amount = amount / 100
    try:
        amount.quantize(_CENT)
    except InvalidOperation:
        return None
    return amount
