"""Configuration loading, validation, and access."""

from __future__ import annotations

import copy
import math
import os
from pathlib import Path
from string import Formatter
from typing import Mapping

import yaml
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from price_relay.core.exceptions import ConfigError
from price_relay.core.models import SourceId

_CONFIG_PATH_ENV = "PRICE_RELAY_CONFIG"
_DEFAULT_CONFIG_FILE = "price-relay.yml"
_NULL_WORDS = frozenset({"null", "none", "~"})


class BotConfig(BaseModel):
    """Chat identity and command grammar."""

    model_config = ConfigDict(frozen=True)

    name: str = "pricebot"
    command_prefix: str = "!"

    @field_validator("name", "command_prefix")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("must be non-empty and contain no whitespace")
        return v


class SourcesConfig(BaseModel):
    """Which price sources run, in which order, and how long they may take."""

    model_config = ConfigDict(frozen=True)

    priority: list[SourceId] = [SourceId.STEAM, SourceId.GOG, SourceId.HUMBLE]
    enabled: list[SourceId] | None = None
    request_timeout: float = 10.0
    search_timeout: float | None = 15.0
    user_agent: str = "price-relay/0.1 (+https://github.com/price-relay/price-relay)"
    country_code: str = "us"
    default_currency: str = "USD"

    @field_validator("priority", "enabled", mode="before")
    @classmethod
    def split_comma_list(cls, v: object) -> object:
        """Accept ``steam,gog`` from environment variables."""
        if isinstance(v, str):
            return [part.strip().lower() for part in v.split(",") if part.strip()]
        return v

    @field_validator("priority")
    @classmethod
    def priority_unique(cls, v: list[SourceId]) -> list[SourceId]:
        if len(set(v)) != len(v):
            raise ValueError("priority must not list a source twice")
        return v

    @field_validator("request_timeout")
    @classmethod
    def request_timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be > 0")
        return v

    @field_validator("search_timeout")
    @classmethod
    def search_timeout_positive(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("search_timeout must be > 0 or null")
        return v

    @field_validator("default_currency")
    @classmethod
    def currency_upper(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def active(self) -> list[SourceId]:
        """Enabled sources in priority order; unprioritized ones go last."""
        enabled = list(SourceId) if self.enabled is None else self.enabled
        ordered = [s for s in self.priority if s in enabled]
        ordered.extend(s for s in enabled if s not in ordered)
        return ordered


# Placeholders each template may reference
TEMPLATE_FIELDS: dict[str, frozenset[str]] = {
    "not_found": frozenset({"query"}),
    "single_found": frozenset(
        {"name", "price", "currency_symbol", "platforms", "early_access_marker", "url", "source"}
    ),
    "multi_found": frozenset({"name", "platforms", "early_access_marker", "prices", "query"}),
    "price_line": frozenset({"index", "price", "currency_symbol", "source", "url"}),
    "help": frozenset({"commands", "bot_name", "prefix"}),
    "early_access_marker": frozenset(),
    "platforms_format": frozenset({"platforms"}),
    "url_format": frozenset({"url"}),
}


class TemplatesConfig(BaseModel):
    """User-facing wording. Placeholders use ``str.format`` syntax."""

    model_config = ConfigDict(frozen=True)

    not_found: str = 'Sorry, I could not find "{query}".'
    single_found: str = (
        "{name}{early_access_marker}{platforms}: {currency_symbol}{price}{url}"
    )
    multi_found: str = "{name}{early_access_marker}{platforms}\n{prices}"
    price_line: str = "{index}. {currency_symbol}{price} at {source}"
    help: str = "Commands: {commands}. Or ask everyone at once: {bot_name} <title>"
    early_access_marker: str = " [Early Access]"
    platforms_format: str = " ({platforms})"
    url_format: str = " {url}"

    @model_validator(mode="after")
    def placeholders_known(self) -> TemplatesConfig:
        for field, allowed in TEMPLATE_FIELDS.items():
            template = getattr(self, field)
            try:
                used = {
                    name for _, name, _, _ in Formatter().parse(template) if name
                }
            except ValueError as e:
                raise ValueError(f"template {field!r} is malformed: {e}") from e
            unknown = used - allowed
            if unknown:
                raise ValueError(
                    f"template {field!r} uses unknown placeholders: "
                    f"{', '.join(sorted(unknown))}"
                )
        return self


class DisplayConfig(BaseModel):
    """Response rendering configuration."""

    model_config = ConfigDict(frozen=True)

    show_urls: bool = True
    templates: TemplatesConfig = TemplatesConfig()


class APIConfig(BaseModel):
    """FastAPI webhook configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 8000


class RelayConfig(BaseModel):
    """Root configuration for the entire price-relay system."""

    model_config = ConfigDict(frozen=True)

    bot: BotConfig = BotConfig()
    sources: SourcesConfig = SourcesConfig()
    display: DisplayConfig = DisplayConfig()
    api: APIConfig = APIConfig()


def load_config(
    config_path: str | None = None,
    env_prefix: str = "PRICE_RELAY_",
) -> RelayConfig:
    """Build the relay configuration from layered sources.

    Layers, lowest precedence first:
    1. Built-in defaults
    2. YAML file (``config_path``, else ``$PRICE_RELAY_CONFIG``, else
       ``./price-relay.yml`` when present)
    3. Environment variables, ``__`` separating nesting levels:
       ``PRICE_RELAY_SOURCES__SEARCH_TIMEOUT=5`` sets ``sources.search_timeout``
       and ``PRICE_RELAY_SOURCES__SEARCH_TIMEOUT=null`` disables it.

    Raises:
        ConfigError: The file is missing or unreadable, or a value is invalid.
    """
    try:
        layered = _read_config_file(_resolve_config_path(config_path))
        layered = _merge_env_vars(layered, env_prefix)
        return RelayConfig.model_validate(layered)
    except ConfigError:
        raise
    except (ValueError, OSError) as e:
        raise ConfigError(str(e), context={"source": "load_config"}) from e


def _resolve_config_path(explicit: str | None) -> Path | None:
    """Pick the YAML file to read; an explicitly named file must exist."""
    candidates = (
        ("config_path", explicit, True),
        (_CONFIG_PATH_ENV, os.environ.get(_CONFIG_PATH_ENV), True),
        ("default", _DEFAULT_CONFIG_FILE, False),
    )
    for origin, raw, required in candidates:
        if not raw:
            continue
        path = Path(raw).expanduser()
        if path.is_file():
            return path
        if required:
            raise ConfigError(
                f"Config file not found: {raw}",
                context={"field": origin, "value": raw},
            )
    return None


def _read_config_file(path: Path | None) -> dict:
    if path is None:
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse YAML config {path}: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(
            f"YAML config must be a mapping, got {type(data).__name__}",
            context={"field": "config_file", "value": str(path)},
        )
    return dict(data)


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Return a copy of ``base`` with matching environment variables laid over it.

    ``base`` is never modified, nested sections included.
    """
    result = copy.deepcopy(base)

    for key, value in sorted(os.environ.items()):
        if not key.startswith(prefix):
            continue
        path = key[len(prefix) :].lower().split("__")
        # the config-file variable and malformed names like FOO____BAR
        if path == ["config"] or not all(path):
            continue

        node = result
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[path[-1]] = _auto_cast(value)

    return result


def _auto_cast(value: str) -> str | int | float | bool | None:
    """Interpret an environment string: booleans, null, finite numbers, else text."""
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in _NULL_WORDS:
        return None
    for cast in (int, float):
        try:
            number = cast(lowered)
        except ValueError:
            continue
        if isinstance(number, int) or math.isfinite(number):
            return number
    return value
