"""Integration test fixtures: real adapters, HTTP mocked with respx."""

from __future__ import annotations

import httpx
import pytest
import respx

STEAM_APP_LIST_URL = "https://api.steampowered.com/ISteamApps/GetAppList/v2/"
STEAM_DETAILS_URL = "https://store.steampowered.com/api/appdetails"
GOG_URL = "https://embed.gog.com/games/ajax/filtered"
HUMBLE_URL = "https://www.humblebundle.com/store/api/search"


@pytest.fixture
def steam_app_list() -> dict:
    return {
        "applist": {
            "apps": [
                {"appid": 400, "name": "Portal"},
                {"appid": 620, "name": "Portal 2"},
            ]
        }
    }


@pytest.fixture
def steam_portal_details() -> dict:
    return {
        "400": {
            "success": True,
            "data": {
                "name": "Portal",
                "is_free": False,
                "price_overview": {"currency": "USD", "final": 999},
                "platforms": {"windows": True, "mac": False, "linux": False},
                "genres": [{"id": "1"}],
            },
        }
    }


@pytest.fixture
def gog_portal_search() -> dict:
    return {
        "products": [
            {
                "title": "Portal",
                "price": {"amount": "8.50", "finalAmount": "8.50", "currency": "EUR"},
                "worksOn": {"Windows": True, "Mac": True, "Linux": False},
                "isInDevelopment": False,
                "url": "/game/portal",
            }
        ]
    }


@pytest.fixture
def store_api(steam_app_list, steam_portal_details, gog_portal_search):
    """All three store APIs mocked; Humble has nothing for the query."""
    with respx.mock(assert_all_called=False) as mock:
        mock.get(STEAM_APP_LIST_URL, name="steam_index").mock(
            return_value=httpx.Response(200, json=steam_app_list)
        )
        mock.get(STEAM_DETAILS_URL, name="steam_details").mock(
            return_value=httpx.Response(200, json=steam_portal_details)
        )
        mock.get(GOG_URL, name="gog").mock(
            return_value=httpx.Response(200, json=gog_portal_search)
        )
        mock.get(HUMBLE_URL, name="humble").mock(
            return_value=httpx.Response(200, json={"results": []})
        )
        yield mock
