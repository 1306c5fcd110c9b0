"""Custom exception hierarchy for price-relay."""

from typing import Any


class PriceRelayError(Exception):
    """Base exception for all price-relay errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(PriceRelayError):
    """Invalid or missing configuration.

    Raised by load_config() during startup. Should be treated as fatal.

    Context keys:
        field: str — the config field that failed validation
        value: Any — the invalid value
    """


class TemplateError(ConfigError):
    """A configured response template could not be rendered.

    Context keys:
        template: str — the template field name
        placeholder: str — the offending placeholder
    """


class SourceError(PriceRelayError):
    """A price source failed to answer a query.

    Policy: never propagated past the adapter. The source is reported as
    not found for that query and the other sources' results stay valid.

    Context keys:
        source: str — the source id
        url: str — the URL that was being fetched
    """


class SourceFetchError(SourceError):
    """Transport failure or non-200 response from a source.

    Context keys:
        status_code: int | None — HTTP status code if a response arrived
    """


class MalformedResponseError(SourceError):
    """A source answered with a payload that could not be decoded.

    Context keys:
        reason: str — what was wrong with the payload
    """


class IndexNotLoadedError(SourceError):
    """A source's pre-loaded name index was queried before it finished loading."""
