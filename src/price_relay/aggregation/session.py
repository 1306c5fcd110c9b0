"""Fan-out/fan-in bookkeeping for one in-flight query.

A session dispatches every source concurrently, records each source's
result as it settles (found, not found, failed, or past its deadline), and
runs the merge callback exactly once, on the report that brings the
pending count to zero.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Generic, Mapping, Sequence, TypeVar

from price_relay.core.models import SearchStatus, SourceId, SourceResult
from price_relay.sources.base import SourceAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")

MergeCallback = Callable[[Mapping[SourceId, SourceResult]], T]


class AggregationSession(Generic[T]):
    """Runs N sources for one query and merges once all N have reported.

    The check-and-set on the merged flag happens between awaits, so it is
    atomic with respect to other completions on the same event loop.

    Parameters
    ----------
    key : str
        Normalized query; identifies the session.
    text : str
        Raw query text handed to each source.
    sources : Sequence[SourceAdapter]
        Sources to dispatch, in priority order.
    on_merge : MergeCallback
        Called once with the full result map; its return value is what
        ``wait()`` resolves to.
    deadline : float | None
        Seconds each source may take before it is reported as timed out.
        None waits indefinitely.
    """

    def __init__(
        self,
        key: str,
        text: str,
        sources: Sequence[SourceAdapter],
        on_merge: MergeCallback[T],
        deadline: float | None = None,
    ) -> None:
        self.key = key
        self.text = text
        self._sources = list(sources)
        self._order: list[SourceId] = [s.source_id for s in self._sources]
        if len(set(self._order)) != len(self._order):
            raise ValueError("a session cannot dispatch the same source twice")
        self._on_merge = on_merge
        self._deadline = deadline
        self._results: dict[SourceId, SourceResult] = {}
        self._pending = len(self._sources)
        self._merged = False
        self._started = False
        self._tasks: list[asyncio.Task[None]] = []
        self._outcome: asyncio.Future[T] | None = None

    @property
    def source_ids(self) -> list[SourceId]:
        return list(self._order)

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def merged(self) -> bool:
        return self._merged

    @property
    def results(self) -> dict[SourceId, SourceResult]:
        """Results received so far, in dispatch order."""
        return {sid: self._results[sid] for sid in self._order if sid in self._results}

    @property
    def statuses(self) -> dict[SourceId, SearchStatus]:
        return {sid: r.status for sid, r in self.results.items()}

    def start(self) -> None:
        """Dispatch every source. Must be called from a running event loop."""
        if self._started:
            raise RuntimeError(f"session {self.key!r} already started")
        self._started = True
        self._outcome = asyncio.get_running_loop().create_future()
        self._results = {}
        self._pending = len(self._sources)
        self._merged = False

        logger.info(
            "Session %r dispatching to %d sources: %s",
            self.key, len(self._sources), ", ".join(self._order) or "-",
        )
        if not self._sources:
            self._maybe_merge()
            return

        for source in self._sources:
            task = asyncio.create_task(
                self._dispatch(source), name=f"search:{source.source_id}:{self.key}"
            )
            self._tasks.append(task)

    async def wait(self) -> T:
        """Wait for the merge and return its value.

        Cancelling the waiter does not cancel the session.
        """
        if self._outcome is None:
            raise RuntimeError(f"session {self.key!r} has not been started")
        return await asyncio.shield(self._outcome)

    def report(self, source_id: SourceId, result: SourceResult) -> None:
        """Record one source's result. A source may report only once."""
        if self._outcome is None:
            raise RuntimeError(f"session {self.key!r} has not been started")
        if source_id not in self._order:
            logger.warning(
                "Session %r ignoring report from undispatched source '%s'",
                self.key, source_id,
            )
            return
        if source_id in self._results:
            logger.warning(
                "Session %r ignoring duplicate report from '%s'", self.key, source_id
            )
            return

        self._results[source_id] = result
        self._pending -= 1
        logger.debug(
            "Session %r: '%s' reported %s, %d pending",
            self.key, source_id, result.status, self._pending,
        )
        self._maybe_merge()

    async def _dispatch(self, source: SourceAdapter) -> None:
        source_id = source.source_id
        try:
            if self._deadline is None:
                result = await source.search(self.text)
            else:
                result = await asyncio.wait_for(
                    source.search(self.text), timeout=self._deadline
                )
        except asyncio.TimeoutError:
            logger.warning(
                "Source '%s' missed its %.1fs deadline for %r",
                source_id, self._deadline, self.text,
            )
            result = SourceResult.not_found(source_id, status=SearchStatus.TIMEOUT)
        except Exception as e:
            logger.warning(
                "Source '%s' raised for %r: %s: %s",
                source_id, self.text, type(e).__name__, e,
            )
            result = SourceResult.not_found(source_id, status=SearchStatus.ERROR)

        if result.source != source_id:
            logger.warning(
                "Source '%s' answered as '%s'; recording under '%s'",
                source_id, result.source, source_id,
            )
            result = result.model_copy(update={"source": source_id})

        self.report(source_id, result)

    def _maybe_merge(self) -> None:
        if self._pending != 0 or self._merged:
            return
        self._merged = True
        assert self._outcome is not None

        results = self.results
        found = sum(1 for r in results.values() if r.found)
        logger.info(
            "Session %r merging: %d/%d found (%s)",
            self.key, found, len(results),
            ", ".join(f"{sid}={r.status}" for sid, r in results.items()) or "-",
        )
        try:
            value = self._on_merge(results)
        except Exception as e:
            self._outcome.set_exception(e)
            return
        self._outcome.set_result(value)
