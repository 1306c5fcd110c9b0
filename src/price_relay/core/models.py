"""Pydantic models for inbound queries, prices, and per-source results."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# --- Type Aliases ---

CacheKey = str
CommandWord = str

# --- Enumerations ---


class CommandKind(StrEnum):
    """How an inbound message is routed."""

    SINGLE_SOURCE = "single_source"
    BROADCAST = "broadcast"
    HELP = "help"


class SourceId(StrEnum):
    """Built-in price sources. The value doubles as the command word."""

    STEAM = "steam"
    GOG = "gog"
    HUMBLE = "humble"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[SourceId, str] = {
    SourceId.STEAM: "Steam",
    SourceId.GOG: "GOG",
    SourceId.HUMBLE: "Humble Store",
}


class SearchStatus(StrEnum):
    """Outcome of one adapter search.

    Everything except OK is shown to users as "not found"; the distinction
    exists for logs and the health endpoint.
    """

    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"
    TIMEOUT = "timeout"


# --- Query Models ---


class Price(BaseModel):
    """A decimal amount in a currency."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: str

    @field_validator("amount")
    @classmethod
    def amount_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError(f"amount must be >= 0, got {v}")
        return v

    @field_validator("currency")
    @classmethod
    def currency_upper(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("currency must not be empty")
        return v


class InboundMessage(BaseModel):
    """A line of chat text plus where the answer should go."""

    model_config = ConfigDict(frozen=True)

    text: str
    reply_to: Any = None


class Query(BaseModel):
    """A parsed inbound command. Lives only until it has been dispatched."""

    model_config = ConfigDict(frozen=True)

    text: str
    kind: CommandKind
    key: str
    command: CommandWord | None = None
    reply_to: Any = None

    @model_validator(mode="after")
    def single_source_needs_command(self) -> Query:
        if self.kind == CommandKind.SINGLE_SOURCE and not self.command:
            raise ValueError("single_source queries must name a command")
        return self

    @property
    def cache_key(self) -> CacheKey:
        """Key in the response cache. Single-source keys are namespaced."""
        if self.kind == CommandKind.SINGLE_SOURCE:
            return f"{self.command}:{self.key}"
        return self.key


class SourceResult(BaseModel):
    """What one source answered for one query.

    Descriptive fields are meaningless when ``found`` is False.
    """

    model_config = ConfigDict(frozen=True)

    source: SourceId
    found: bool
    status: SearchStatus = SearchStatus.OK
    name: str | None = None
    price: Price | None = None
    platforms: frozenset[str] = frozenset()
    early_access: bool = False
    url: str | None = None

    @field_validator("platforms")
    @classmethod
    def platforms_lower(cls, v: frozenset[str]) -> frozenset[str]:
        return frozenset(p.strip().lower() for p in v if p and p.strip())

    @model_validator(mode="after")
    def found_requires_name_and_price(self) -> SourceResult:
        if self.found:
            if not self.name or self.price is None:
                raise ValueError("found results must carry a name and a price")
            if self.status != SearchStatus.OK:
                raise ValueError(f"found results must have status ok, got {self.status}")
        elif self.status == SearchStatus.OK:
            raise ValueError("results that were not found cannot have status ok")
        return self

    @classmethod
    def not_found(
        cls,
        source: SourceId,
        status: SearchStatus = SearchStatus.NOT_FOUND,
    ) -> SourceResult:
        return cls(source=source, found=False, status=status)
