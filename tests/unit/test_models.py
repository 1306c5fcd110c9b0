"""Tests for price_relay.core.models."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from price_relay.core.models import (
    CommandKind,
    Price,
    Query,
    SearchStatus,
    SourceId,
    SourceResult,
)


class TestPrice:
    def test_currency_upper_cased(self):
        assert Price(amount=Decimal("1.00"), currency=" usd ").currency == "USD"

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="amount must be >= 0"):
            Price(amount=Decimal("-1"), currency="USD")

    def test_empty_currency_rejected(self):
        with pytest.raises(ValidationError, match="currency must not be empty"):
            Price(amount=Decimal("1"), currency="  ")


class TestSourceId:
    def test_display_names(self):
        assert SourceId.STEAM.display_name == "Steam"
        assert SourceId.GOG.display_name == "GOG"
        assert SourceId.HUMBLE.display_name == "Humble Store"

    def test_value_is_command_word(self):
        assert str(SourceId.HUMBLE) == "humble"


class TestQuery:
    def test_broadcast_cache_key_is_normalized_key(self):
        q = Query(text="Portal 2", kind=CommandKind.BROADCAST, key="portal2")
        assert q.cache_key == "portal2"

    def test_single_source_cache_key_is_namespaced(self):
        q = Query(
            text="Portal 2", kind=CommandKind.SINGLE_SOURCE, key="portal2", command="steam"
        )
        assert q.cache_key == "steam:portal2"

    def test_keyspaces_disjoint(self):
        single = Query(text="x", kind=CommandKind.SINGLE_SOURCE, key="gogx", command="gog")
        broadcast = Query(text="gog:x", kind=CommandKind.BROADCAST, key="gogx")
        assert single.cache_key != broadcast.cache_key

    def test_single_source_requires_command(self):
        with pytest.raises(ValidationError, match="must name a command"):
            Query(text="x", kind=CommandKind.SINGLE_SOURCE, key="x")

    def test_reply_to_is_opaque(self):
        destination = object()
        q = Query(text="x", kind=CommandKind.BROADCAST, key="x", reply_to=destination)
        assert q.reply_to is destination


class TestSourceResult:
    def test_not_found_constructor(self):
        r = SourceResult.not_found(SourceId.GOG)
        assert r.found is False
        assert r.status == SearchStatus.NOT_FOUND

    def test_not_found_with_status(self):
        r = SourceResult.not_found(SourceId.GOG, status=SearchStatus.TIMEOUT)
        assert r.status == SearchStatus.TIMEOUT

    def test_found_requires_price(self):
        with pytest.raises(ValidationError, match="name and a price"):
            SourceResult(source=SourceId.STEAM, found=True, name="Portal")

    def test_found_requires_ok_status(self):
        with pytest.raises(ValidationError, match="status ok"):
            SourceResult(
                source=SourceId.STEAM,
                found=True,
                status=SearchStatus.ERROR,
                name="Portal",
                price=Price(amount=Decimal("1"), currency="USD"),
            )

    def test_missing_cannot_be_ok(self):
        with pytest.raises(ValidationError, match="cannot have status ok"):
            SourceResult(source=SourceId.STEAM, found=False)

    def test_platforms_lowercased_and_blank_dropped(self, make_found):
        r = make_found(SourceId.STEAM, "Portal", "1.00", platforms={"Windows", " ", "MAC"})
        assert r.platforms == frozenset({"windows", "mac"})

    def test_frozen(self, portal_steam):
        with pytest.raises(ValidationError):
            portal_steam.name = "Other"
