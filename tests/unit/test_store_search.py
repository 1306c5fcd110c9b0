"""Tests for the search-API stores: GogSource and HumbleSource."""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest
import respx

from price_relay.core.models import SearchStatus, SourceId
from price_relay.sources.gog import GogSource
from price_relay.sources.humble import HumbleSource

GOG_URL = "https://embed.gog.com/games/ajax/filtered"
HUMBLE_URL = "https://www.humblebundle.com/store/api/search"


@pytest.fixture
async def gog(sources_config):
    async with GogSource(sources_config) as source:
        yield source


@pytest.fixture
async def humble(sources_config):
    async with HumbleSource(sources_config) as source:
        yield source


def gog_product(title: str, amount: str = "8.50", **extra) -> dict:
    product = {
        "title": title,
        "price": {"amount": amount, "finalAmount": amount, "currency": "EUR"},
        "worksOn": {"Windows": True, "Mac": True, "Linux": False},
        "isInDevelopment": False,
        "url": f"/game/{title.lower().replace(' ', '_')}",
    }
    product.update(extra)
    return product


def humble_item(name: str, amount: float = 7.49, **extra) -> dict:
    item = {
        "human_name": name,
        "current_price": {"amount": amount, "currency": "USD"},
        "platforms": ["windows", "linux"],
        "delivery_methods": ["steam"],
        "content_types": ["game"],
        "human_url": name.lower().replace(" ", "-"),
    }
    item.update(extra)
    return item


class TestGogSource:
    @respx.mock
    async def test_found(self, gog):
        route = respx.get(GOG_URL).mock(
            return_value=httpx.Response(200, json={"products": [gog_product("Portal")]})
        )
        result = await gog.search("Portal")

        params = route.calls.last.request.url.params
        assert params["search"] == "Portal"
        assert params["mediaType"] == "game"

        assert result.found
        assert result.source == SourceId.GOG
        assert result.name == "Portal"
        assert result.price.amount == Decimal("8.50")
        assert result.price.currency == "EUR"
        assert result.platforms == frozenset({"windows", "mac"})
        assert result.url == "https://www.gog.com/game/portal"

    @respx.mock
    async def test_strict_prefix_preferred(self, gog):
        products = [gog_product("Half-Life"), gog_product("Half-Life 2", "9.99")]
        respx.get(GOG_URL).mock(return_value=httpx.Response(200, json={"products": products}))
        result = await gog.search("Half-Life 2")
        assert result.name == "Half-Life 2"
        assert result.price.amount == Decimal("9.99")

    @respx.mock
    async def test_relaxed_first_result(self, gog):
        products = [gog_product("Portal"), gog_product("Portal 2")]
        respx.get(GOG_URL).mock(return_value=httpx.Response(200, json={"products": products}))
        result = await gog.search("zzz")
        assert result.found
        assert result.name == "Portal"

    @respx.mock
    async def test_final_amount_preferred(self, gog):
        product = gog_product("Portal")
        product["price"] = {"amount": "9.99", "finalAmount": "2.49", "currency": "USD"}
        respx.get(GOG_URL).mock(return_value=httpx.Response(200, json={"products": [product]}))
        result = await gog.search("portal")
        assert result.price.amount == Decimal("2.49")

    @respx.mock
    async def test_in_development_is_early_access(self, gog):
        product = gog_product("Hades", isInDevelopment=True)
        respx.get(GOG_URL).mock(return_value=httpx.Response(200, json={"products": [product]}))
        assert (await gog.search("hades")).early_access is True

    @respx.mock
    async def test_unpriced_products_skipped(self, gog):
        products = [gog_product("Portal", price=None), gog_product("Portal 2", "4.99")]
        respx.get(GOG_URL).mock(return_value=httpx.Response(200, json={"products": products}))
        result = await gog.search("portal")
        assert result.name == "Portal 2"

    @respx.mock
    async def test_empty_products(self, gog):
        respx.get(GOG_URL).mock(return_value=httpx.Response(200, json={"products": []}))
        result = await gog.search("portal")
        assert result.found is False
        assert result.status == SearchStatus.NOT_FOUND

    @respx.mock
    async def test_products_not_a_list(self, gog):
        respx.get(GOG_URL).mock(return_value=httpx.Response(200, json={"products": "x"}))
        assert (await gog.search("portal")).status == SearchStatus.ERROR

    @respx.mock
    async def test_server_error(self, gog):
        respx.get(GOG_URL).mock(return_value=httpx.Response(500))
        result = await gog.search("portal")
        assert result.found is False
        assert result.status == SearchStatus.ERROR


class TestHumbleSource:
    @respx.mock
    async def test_found(self, humble):
        route = respx.get(HUMBLE_URL).mock(
            return_value=httpx.Response(200, json={"results": [humble_item("Portal 2")]})
        )
        result = await humble.search("portal")

        assert route.calls.last.request.url.params["search"] == "portal"
        assert result.found
        assert result.source == SourceId.HUMBLE
        assert result.name == "Portal 2"
        assert result.price.amount == Decimal("7.49")
        assert result.price.currency == "USD"
        assert result.platforms == frozenset({"windows", "linux"})
        assert result.early_access is False
        assert result.url == "https://www.humblebundle.com/store/portal-2"

    @respx.mock
    async def test_early_access_marker(self, humble):
        item = humble_item("Hades", delivery_methods=["steam", "early_access"])
        respx.get(HUMBLE_URL).mock(return_value=httpx.Response(200, json={"results": [item]}))
        assert (await humble.search("hades")).early_access is True

    @respx.mock
    async def test_strict_prefix_preferred(self, humble):
        items = [humble_item("The Portal Bundle"), humble_item("Portal", 4.99)]
        respx.get(HUMBLE_URL).mock(return_value=httpx.Response(200, json={"results": items}))
        result = await humble.search("portal")
        assert result.name == "Portal"

    @respx.mock
    async def test_missing_results(self, humble):
        respx.get(HUMBLE_URL).mock(return_value=httpx.Response(200, json={}))
        assert (await humble.search("portal")).status == SearchStatus.NOT_FOUND

    @respx.mock
    async def test_non_object_payload(self, humble):
        respx.get(HUMBLE_URL).mock(return_value=httpx.Response(200, json=["Portal"]))
        assert (await humble.search("portal")).status == SearchStatus.ERROR

    @respx.mock
    async def test_timeout_from_transport(self, humble):
        respx.get(HUMBLE_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        assert (await humble.search("portal")).status == SearchStatus.ERROR
