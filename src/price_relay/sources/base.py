"""Source adapter protocol, candidate selection, and registry.

Architecture
------------
Each price source is an adapter with one async operation:

    query text → SourceAdapter.search() → SourceResult

- **SourceAdapter** is the protocol the aggregation layer depends on. It must
  always resolve: adapter-local failures become ``found=False`` results.
- **select_candidate** is the shared two-pass matching policy adapters apply
  to the candidate list their provider returned.
- **SourceRegistry** maps source ids to factories so the router can build
  the enabled adapters from config.
"""

from __future__ import annotations

from typing import Callable, Protocol, Sequence, TypeVar, runtime_checkable

from price_relay.core.config import SourcesConfig
from price_relay.core.models import SourceId, SourceResult
from price_relay.core.normalize import starts_with_query

T = TypeVar("T")


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for all price sources."""

    source_id: SourceId

    async def search(self, text: str) -> SourceResult:
        """Look ``text`` up and return exactly one result. Never raises."""
        ...

    async def close(self) -> None: ...


def select_candidate(
    candidates: Sequence[T],
    query: str,
    name: Callable[[T], str],
) -> T | None:
    """Pick one candidate for ``query``.

    Strict pass: the first candidate whose name begins with the query,
    case-insensitively. Relaxed pass: the first candidate in the order the
    provider returned them. None when there are no candidates.
    """
    for candidate in candidates:
        if starts_with_query(name(candidate), query):
            return candidate
    if candidates:
        return candidates[0]
    return None


SourceFactory = Callable[[SourcesConfig], SourceAdapter]


class SourceRegistry:
    """Registry of available price sources."""

    def __init__(self) -> None:
        self._factories: dict[SourceId, SourceFactory] = {}

    def register(self, source_id: SourceId, factory: SourceFactory) -> None:
        if source_id in self._factories:
            raise ValueError(
                f"Source '{source_id}' is already registered. Use replace() to override."
            )
        self._factories[source_id] = factory

    def replace(self, source_id: SourceId, factory: SourceFactory) -> None:
        if source_id not in self._factories:
            raise KeyError(f"Source '{source_id}' is not registered.")
        self._factories[source_id] = factory

    def get(self, source_id: SourceId) -> SourceFactory:
        return self._factories[source_id]

    def list_ids(self) -> list[SourceId]:
        return list(self._factories.keys())

    def create_enabled(self, config: SourcesConfig) -> list[SourceAdapter]:
        """Instantiate every enabled, registered source in priority order."""
        return [
            self._factories[source_id](config)
            for source_id in config.active
            if source_id in self._factories
        ]


# Module-level singleton registry; built-ins register in price_relay.sources
registry = SourceRegistry()
