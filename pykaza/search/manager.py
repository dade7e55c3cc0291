from __future__ import annotations

import collections
import dataclasses
from collections.abc import Mapping
from typing import Any

from dacite import DaciteError  # type: ignore

from pykaza.constants.config import DEFAULT_SEARCH_SOURCE, SEARCH_RETRY_BASE_DELAY
from pykaza.constants.errors import ErrorCode
from pykaza.constants.misc import HEALTH_CHECK_QUERY, HEALTH_CHECK_TIMEOUT
from pykaza.constants.node_features import (
    DEFAULT_FALLBACK_ENGINES,
    ENGINE_ALIASES,
    PLATFORM_ENGINES,
    SUPPORTED_SEARCHES,
)
from pykaza.constants.regex import SOURCE_INPUT_MATCH_HTTP, SOURCE_INPUT_MATCH_SEARCH
from pykaza.exceptions.base import KazaException
from pykaza.exceptions.node import NoNodeAvailableException
from pykaza.exceptions.search import NoResultsException, PlatformUnavailableException
from pykaza.helpers.errors import create_error, exception_to_error, log_error, retry, with_timeout
from pykaza.helpers.time import monotonic_ms
from pykaza.logging import getLogger
from pykaza.nodes.api.responses.rest_api import ErrorResponse, LoadTrackResponses, parse_load_result
from pykaza.nodes.protocols import NodePool
from pykaza.players.query.classifier import QueryClassification, classify, platform_for_engine
from pykaza.search.cache import ResolutionCache, cache_key
from pykaza.search.options import SearchOptions
from pykaza.search.result import SearchMetadata, SearchResult
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

LOGGER = getLogger("PyKaza.SearchManager")

SearchOptionsInput = SearchOptions | Mapping[str, Any] | None


@dataclasses.dataclass(repr=True, kw_only=True, slots=True)
class _Plan:
    """The resolved form of a query, before anything is sent upstream"""

    classification: QueryClassification
    engine: str | None
    qualified: str
    text: str
    platform: str


class SearchManager:
    """Resolves queries into tracks through the node pool.

    Each search classifies the query, picks an engine, consults the resolution cache, resolves the qualified
    query with a timeout and retries, and walks the fallback engines when the primary engine yields nothing.
    Failures are never raised from :meth:`search`, they are returned as ``error`` results.

    Parameters
    ----------
    node_pool: :class:`NodePool`
        The pool used to pick the node that resolves each query.
    cache: :class:`ResolutionCache`
        The cache to use, a new one is created when omitted.
    default_source: :class:`str`
        The engine used for plain text queries without an explicit source.
    default_options: :class:`SearchOptions`
        The options every call starts from.
    retry_base_delay: :class:`float`
        Seconds before the first retry, doubled for each further retry.
    """

    def __init__(
        self,
        node_pool: NodePool,
        cache: ResolutionCache | None = None,
        default_source: str = DEFAULT_SEARCH_SOURCE,
        default_options: SearchOptions | None = None,
        retry_base_delay: float = SEARCH_RETRY_BASE_DELAY,
    ) -> None:
        self._node_pool = node_pool
        self._cache = cache if cache is not None else ResolutionCache()
        self._default_source = self.normalize_engine(default_source)
        self._default_options = default_options or SearchOptions()
        self._retry_base_delay = retry_base_delay
        self._total_searches = 0
        self._cache_hits = 0
        self._errors = 0
        self._platform_usage: collections.Counter[str] = collections.Counter()

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    @property
    def default_source(self) -> str:
        return self._default_source

    @property
    def default_options(self) -> SearchOptions:
        return self._default_options

    @staticmethod
    def normalize_engine(source: str) -> str:
        """Maps an engine name, platform name or short alias onto a search engine.

        Raises
        ------
        :class:`PlatformUnavailableException`
            When the source is not recognised.
        """
        lowered = source.strip().lower().removesuffix(":")
        if lowered in SUPPORTED_SEARCHES:
            return lowered
        if (engine := ENGINE_ALIASES.get(lowered)) is not None:
            return engine
        raise PlatformUnavailableException(f"Unknown search source: {source}", details={"source": source})

    def _plan(self, text: str, source: str | None) -> _Plan:
        classification = classify(text)
        if classification.is_valid_url:
            qualified = text if SOURCE_INPUT_MATCH_HTTP.match(text) else classification.url
            engine = source or classification.search_engine_prefix
            platform = classification.platform
            return _Plan(
                classification=classification, engine=engine, qualified=qualified, text=text, platform=platform
            )
        if match := SOURCE_INPUT_MATCH_SEARCH.match(text):
            bare = match["search_query"].strip()
            if source is None:
                prefix = match["search_source"].lower()
                engine = ENGINE_ALIASES.get(prefix, prefix)
                return _Plan(
                    classification=classification,
                    engine=engine,
                    qualified=text,
                    text=bare,
                    platform=platform_for_engine(engine),
                )
            text = bare
        engine = source or self._default_source
        return _Plan(
            classification=classification,
            engine=engine,
            qualified=f"{engine}:{text}",
            text=text,
            platform=platform_for_engine(engine),
        )

    def _fallback_chain(self, options: SearchOptions, primary: str | None) -> list[str]:
        candidates = DEFAULT_FALLBACK_ENGINES if options.fallback_engines is None else options.fallback_engines
        chain: list[str] = []
        for candidate in candidates:
            try:
                engine = self.normalize_engine(candidate)
            except PlatformUnavailableException:
                LOGGER.warning("Ignoring unknown fallback engine %s", candidate)
                continue
            if engine != primary and engine not in chain:
                chain.append(engine)
        return chain

    async def _resolve(self, qualified: str, timeout: float) -> LoadTrackResponses:
        node = self._node_pool.ideal_node()
        if node is None:
            raise NoNodeAvailableException(details={"query": qualified})
        LOGGER.trace("Resolving %s on node %s", qualified, node.name)
        try:
            data = await with_timeout(node.resolve(qualified), timeout)
        except Exception as exc:
            error = exception_to_error(exc)
            if error is exc:
                raise
            raise error from exc
        try:
            return parse_load_result(data)
        except (KeyError, TypeError, DaciteError) as exc:
            raise create_error(
                ErrorCode.LAVALINK_ERROR, {"query": qualified}, "Lavalink returned an unexpected response"
            ) from exc

    @staticmethod
    def _load_failure(response: ErrorResponse, qualified: str) -> KazaException:
        return create_error(
            ErrorCode.SEARCH_FAILED,
            {"query": qualified, "severity": response.data.severity, "cause": response.data.cause},
            response.data.message or None,
        )

    def _finish(self, result: SearchResult, context: str) -> SearchResult:
        if result.type == "error":
            self._errors += 1
            log_error(result.exception, context)
        return result

    async def search(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        """|coro|
        Searches for tracks.

        Parameters
        ----------
        query: :class:`str`
            Free text, a text query already qualified with an engine such as ``ytsearch:song``, a URL, or a
            platform URI such as ``spotify:track:<id>``.
        options: :class:`SearchOptions` | :class:`dict`
            Search options, camelCase and snake_case keys are accepted and unknown keys ignored.
        **overrides
            Individual options applied on top of ``options``.

        Returns
        -------
        :class:`SearchResult`
            The result, failures are returned with type ``error`` rather than raised.
        """
        opts = self._default_options.merge(options, **overrides)
        self._total_searches += 1
        started = monotonic_ms()
        text = query.strip() if isinstance(query, str) else ""
        if not text:
            error = create_error(ErrorCode.SEARCH_FAILED, {"query": query}, "Search query cannot be empty")
            metadata = SearchMetadata(engine=None, platform="generic")
            return self._finish(SearchResult.from_error(error, metadata), "Search")
        try:
            source = self.normalize_engine(opts.source) if opts.source else None
        except PlatformUnavailableException as exc:
            metadata = SearchMetadata(engine=None, platform="generic", elapsed=monotonic_ms() - started)
            return self._finish(SearchResult.from_error(exc, metadata), "Search")

        key = cache_key(text, source, opts.limit)
        if opts.cache_results and (cached := self._cache.get(key)) is not None:
            self._cache_hits += 1
            self._platform_usage[cached.platform] += 1
            LOGGER.trace("Cache hit for %r", text)
            return dataclasses.replace(
                cached.with_requester(opts.requester),
                metadata=dataclasses.replace(cached.metadata, cache_hit=True, elapsed=0.0),
            )

        plan = self._plan(text, source)
        self._platform_usage[plan.platform] += 1
        attempted: list[str] = [plan.engine or plan.platform]
        LOGGER.verbose("Searching %r with engine %s", plan.qualified, plan.engine)

        result: SearchResult | None = None
        engine = plan.engine
        error: KazaException | None = None
        try:
            response = await retry(
                lambda: self._resolve(plan.qualified, opts.timeout),
                attempts=opts.retry_attempts,
                base_delay=self._retry_base_delay,
            )
        except KazaException as exc:
            error = exc
        else:
            if isinstance(response, ErrorResponse):
                error = self._load_failure(response, plan.qualified)
            elif response.tracks:
                result = SearchResult.from_response(
                    response, self._metadata(engine, plan, started, attempted), opts.limit, opts.requester
                )

        if result is None and not plan.classification.is_valid_url:
            for fallback in self._fallback_chain(opts, plan.engine):
                attempted.append(fallback)
                LOGGER.debug("Falling back to %s for %r", fallback, plan.text)
                try:
                    response = await self._resolve(f"{fallback}:{plan.text}", opts.timeout)
                except KazaException as exc:
                    LOGGER.debug("Fallback engine %s failed: %s", fallback, exc.message)
                    error = exc
                    continue
                if isinstance(response, ErrorResponse):
                    LOGGER.debug("Fallback engine %s failed to load %r", fallback, plan.text)
                    error = self._load_failure(response, f"{fallback}:{plan.text}")
                    continue
                if response.tracks:
                    engine = fallback
                    result = SearchResult.from_response(
                        response, self._metadata(engine, plan, started, attempted), opts.limit, opts.requester
                    )
                    break

        if result is None:
            metadata = self._metadata(engine, plan, started, attempted)
            if error is None:
                no_results = NoResultsException(
                    f'No results found for "{plan.text}"', details={"query": text, "engines": list(attempted)}
                )
                return SearchResult.empty(no_results, metadata)
            return self._finish(SearchResult.from_error(error, metadata), "Search")

        if opts.cache_results:
            self._cache.set(key, result)
        LOGGER.verbose(
            "Found %s tracks for %r with %s in %.0fms", len(result.tracks), text, engine, result.metadata.elapsed
        )
        return result

    @staticmethod
    def _metadata(engine: str | None, plan: _Plan, started: float, attempted: list[str]) -> SearchMetadata:
        platform = plan.platform if engine == plan.engine else platform_for_engine(engine or "")
        return SearchMetadata(
            engine=engine,
            platform=platform,
            elapsed=monotonic_ms() - started,
            attempted_engines=tuple(attempted),
        )

    async def search_platform(
        self, platform: str, query: str, options: SearchOptionsInput = None, **overrides: Any
    ) -> SearchResult:
        """|coro|
        Searches a single platform, falling back to the default engines minus the platform's own.

        Parameters
        ----------
        platform: :class:`str`
            A platform name such as ``spotify`` or any engine alias.
        query: :class:`str`
            The query to search.
        """
        try:
            engine = PLATFORM_ENGINES.get(platform) or self.normalize_engine(platform)
        except PlatformUnavailableException as exc:
            self._total_searches += 1
            return self._finish(
                SearchResult.from_error(exc, SearchMetadata(engine=None, platform=platform)), "SearchPlatform"
            )
        opts = self._default_options.merge(options, **overrides)
        if opts.fallback_engines is None:
            opts = dataclasses.replace(
                opts, fallback_engines=tuple(fallback for fallback in DEFAULT_FALLBACK_ENGINES if fallback != engine)
            )
        return await self.search(query, dataclasses.replace(opts, source=engine))

    async def search_youtube(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self.search_platform("youtube", query, options, **overrides)

    async def search_youtube_music(
        self, query: str, options: SearchOptionsInput = None, **overrides: Any
    ) -> SearchResult:
        return await self.search_platform("youtubeMusic", query, options, **overrides)

    async def search_spotify(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self.search_platform("spotify", query, options, **overrides)

    async def search_apple_music(
        self, query: str, options: SearchOptionsInput = None, **overrides: Any
    ) -> SearchResult:
        return await self.search_platform("applemusic", query, options, **overrides)

    async def search_deezer(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self.search_platform("deezer", query, options, **overrides)

    async def search_soundcloud(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self.search_platform("soundcloud", query, options, **overrides)

    async def search_jiosaavn(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self.search_platform("jiosaavn", query, options, **overrides)

    async def search_qobuz(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self.search_platform("qobuz", query, options, **overrides)

    async def search_tidal(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self.search_platform("tidal", query, options, **overrides)

    async def search_bandcamp(self, query: str, options: SearchOptionsInput = None, **overrides: Any) -> SearchResult:
        return await self.search_platform("bandcamp", query, options, **overrides)

    async def health_check(self) -> bool:
        """|coro|
        Resolves a probe query once, returns whether the node answered in time"""
        node = self._node_pool.ideal_node()
        if node is None:
            return False
        try:
            await with_timeout(node.resolve(HEALTH_CHECK_QUERY), HEALTH_CHECK_TIMEOUT)
        except Exception as exc:  # noqa
            LOGGER.debug("Search health check failed: %s", exc)
            return False
        return True

    def sweep_cache(self) -> int:
        return self._cache.sweep()

    def clear_cache(self) -> None:
        self._cache.clear()
        self._cache_hits = 0

    def stats(self) -> JSON_DICT_TYPE:
        hit_rate = round(self._cache_hits / self._total_searches * 100, 2) if self._total_searches else 0.0
        return {
            "totalSearches": self._total_searches,
            "cacheHits": self._cache_hits,
            "cacheHitRate": hit_rate,
            "errors": self._errors,
            "platformUsage": dict(self._platform_usage),
            "cacheSize": self._cache.size,
        }

    def reset_stats(self) -> None:
        self._total_searches = 0
        self._cache_hits = 0
        self._errors = 0
        self._platform_usage.clear()
