"""Inbound command routing.

Two command forms are recognized, checked in this order:

    !<word> <text>          single-source lookup (or ``!help``)
    <bot-name> <text>       broadcast lookup across every enabled source

Anything else is ignored. Each resolved query is answered from the response
cache when possible; otherwise its sources are dispatched through an
``AggregationSession`` and the rendered response is cached before it is
returned.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Sequence

from price_relay.aggregation.cache import ResponseCache
from price_relay.aggregation.merger import Formatter
from price_relay.aggregation.session import AggregationSession
from price_relay.core.config import RelayConfig
from price_relay.core.models import (
    CacheKey,
    CommandKind,
    InboundMessage,
    Query,
    SourceId,
)
from price_relay.core.normalize import normalize
from price_relay.sources import registry
from price_relay.sources.base import SourceAdapter

logger = logging.getLogger(__name__)

HELP_COMMAND = "help"

ReplyCallback = Callable[[Any, str], Awaitable[None]]
Handler = Callable[[Query], Awaitable[str]]


class QueryRouter:
    """Parses inbound text, consults the cache, and drives source sessions.

    The router owns the process-wide response cache and the source adapters
    (including any pre-loaded index they hold); both are injectable for tests.
    """

    def __init__(
        self,
        config: RelayConfig | None = None,
        sources: Sequence[SourceAdapter] | None = None,
        cache: ResponseCache | None = None,
        formatter: Formatter | None = None,
    ) -> None:
        self._config = config or RelayConfig()
        if sources is None:
            sources = registry.create_enabled(self._config.sources)
        self._sources = self._order_sources(sources)
        self._cache = cache if cache is not None else ResponseCache()
        self._formatter = formatter or Formatter(self._config.display)
        self._inflight: dict[CacheKey, asyncio.Task[str]] = {}
        self._background: set[asyncio.Task[Any]] = set()

        self._handlers: dict[CommandKind, Handler] = {
            CommandKind.SINGLE_SOURCE: self._handle_single,
            CommandKind.BROADCAST: self._handle_broadcast,
            CommandKind.HELP: self._handle_help,
        }

        bot = self._config.bot
        self._command_re = re.compile(
            rf"^{re.escape(bot.command_prefix)}(\S+)(?:\s+(.*))?$", re.DOTALL
        )
        self._address_re = re.compile(
            rf"^{re.escape(bot.name)}[:,]?\s+(.+)$", re.IGNORECASE | re.DOTALL
        )

    def _order_sources(self, sources: Sequence[SourceAdapter]) -> dict[SourceId, SourceAdapter]:
        by_id = {s.source_id: s for s in sources}
        ordered = [sid for sid in self._config.sources.priority if sid in by_id]
        ordered.extend(sid for sid in by_id if sid not in ordered)
        return {sid: by_id[sid] for sid in ordered}

    # --- Introspection ---

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def sources(self) -> list[SourceAdapter]:
        return list(self._sources.values())

    @property
    def commands(self) -> list[str]:
        """Known single-source command words, in priority order."""
        return [str(sid) for sid in self._sources]

    def index_status(self) -> dict[str, bool]:
        """Load state of every source that keeps a pre-loaded index."""
        return {
            str(sid): bool(getattr(source, "index_loaded", False))
            for sid, source in self._sources.items()
            if hasattr(source, "index_loaded")
        }

    # --- Lifecycle ---

    async def startup(self, wait: bool = False) -> None:
        """Start loading source indexes.

        By default the loads run in the background so queries are answered
        (as misses for that source) while they finish.
        """
        loaders = [
            source.load_index()
            for source in self._sources.values()
            if hasattr(source, "load_index")
        ]
        if wait:
            await asyncio.gather(*loaders)
            return
        for loader in loaders:
            self._spawn(loader)

    async def close(self) -> None:
        for task in list(self._background):
            task.cancel()
        for source in self._sources.values():
            await source.close()

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    # --- Parsing ---

    def parse(self, text: str, reply_to: Any = None) -> Query | None:
        """Turn inbound text into a Query, or None if it is not for us."""
        text = text.strip()

        match = self._command_re.match(text)
        if match:
            word = match.group(1).lower()
            rest = (match.group(2) or "").strip()
            if word == HELP_COMMAND:
                return Query(
                    text=rest, kind=CommandKind.HELP, key="",
                    command=HELP_COMMAND, reply_to=reply_to,
                )
            if word in self.commands:
                key = normalize(rest)
                if not key:
                    return None
                return Query(
                    text=rest, kind=CommandKind.SINGLE_SOURCE, key=key,
                    command=word, reply_to=reply_to,
                )

        match = self._address_re.match(text)
        if match:
            rest = match.group(1).strip()
            key = normalize(rest)
            if not key:
                return None
            return Query(
                text=rest, kind=CommandKind.BROADCAST, key=key, reply_to=reply_to
            )

        return None

    # --- Handling ---

    async def handle(
        self,
        message: InboundMessage,
        reply: ReplyCallback | None = None,
    ) -> str | None:
        """Answer one inbound message.

        Returns the response text, or None when the message was ignored.
        When ``reply`` is given it is awaited with the message's reply
        destination and the response.
        """
        query = self.parse(message.text, message.reply_to)
        if query is None:
            logger.debug("Ignoring message %r", message.text)
            return None

        payload = await self._handlers[query.kind](query)
        if reply is not None:
            await reply(query.reply_to, payload)
        return payload

    async def ask(self, text: str) -> str | None:
        """Shorthand for ``handle()`` without a reply destination."""
        return await self.handle(InboundMessage(text=text))

    async def _handle_help(self, query: Query) -> str:
        bot = self._config.bot
        return self._formatter.render_help(
            self.commands + [HELP_COMMAND], bot.name, bot.command_prefix
        )

    async def _handle_single(self, query: Query) -> str:
        source = self._sources[SourceId(query.command)]
        return await self._resolve(
            query,
            [source],
            lambda results: self._formatter.render_single(
                query.text, results[source.source_id]
            ),
        )

    async def _handle_broadcast(self, query: Query) -> str:
        priority = self._config.sources.priority
        return await self._resolve(
            query,
            list(self._sources.values()),
            lambda results: self._formatter.render_broadcast(
                query.text, query.key, results, priority
            ),
        )

    async def _resolve(
        self,
        query: Query,
        sources: list[SourceAdapter],
        render: Callable[..., str],
    ) -> str:
        """Serve ``query`` from the cache or run a session and cache its answer.

        Concurrent identical queries share one session. The session and the
        cache write finish even if every caller goes away.
        """
        key = query.cache_key
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %r", key)
            return cached

        task = self._inflight.get(key)
        if task is None:
            logger.debug("Cache miss for %r", key)
            task = asyncio.create_task(self._run_session(query, sources, render))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        else:
            logger.debug("Joining in-flight lookup for %r", key)
        return await asyncio.shield(task)

    async def _run_session(
        self,
        query: Query,
        sources: list[SourceAdapter],
        render: Callable[..., str],
    ) -> str:
        session: AggregationSession[str] = AggregationSession(
            query.key,
            query.text,
            sources,
            on_merge=render,
            deadline=self._config.sources.search_timeout,
        )
        session.start()
        payload = await session.wait()
        return self._cache.put(query.cache_key, payload)
