"""
AsyncRenderCache - Memoized, single-flight rendering over a shared engine.

Wraps a slow, stateful rendering engine (syntax highlighter, diagram layout)
so that:
- the engine is constructed lazily, at most once per process
- each distinct key is rendered at most once; concurrent identical requests
  share one in-flight computation
- failures are recorded per key and not retried unless asked
- consumers discard results whose key went stale while rendering

Lifecycle: the engine is created on first use and lives for the process
lifetime. There is no teardown.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Hashable, Optional, TypeVar

from apollo.errors import RenderEngineError
from apollo.utils.loop import bound_to_other_loop

logger = logging.getLogger(__name__)

E = TypeVar("E")


@dataclass(frozen=True)
class RenderOutcome:
    """Cached value for one key: markup, or None plus the failure message."""
    markup: Optional[str]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.markup is not None


@dataclass(frozen=True)
class CacheStats:
    entries: int
    pending: int
    hits: int
    misses: int
    failures: int
    engine_builds: int


class AsyncRenderCache(Generic[E]):
    """
    Process-wide render cache around one lazily built engine.

    Args:
        name: Label used in logs
        engine_factory: Coroutine function building the engine
    """

    def __init__(self, name: str, engine_factory: Callable[[], Awaitable[E]]):
        self.name = name
        self._engine_factory = engine_factory
        self._engine: Optional[E] = None
        self._engine_task: Optional[asyncio.Task] = None
        self._results: dict[Hashable, RenderOutcome] = {}
        self._pending: dict[Hashable, asyncio.Task] = {}
        self._hits = 0
        self._misses = 0
        self._failures = 0
        self._engine_builds = 0

    # -------------------------------------------------------------------------
    # Engine
    # -------------------------------------------------------------------------

    @property
    def engine_ready(self) -> bool:
        return self._engine is not None

    async def engine(self) -> E:
        """
        Return the shared engine, building it on first call.

        Concurrent callers await the same in-flight construction. A failed
        construction clears the guard so a later call can try again.

        Raises:
            RenderEngineError: If the engine factory fails
        """
        if self._engine is not None:
            return self._engine

        if self._engine_task is None or bound_to_other_loop(self._engine_task):
            self._engine_task = asyncio.ensure_future(self._build_engine())

        return await asyncio.shield(self._engine_task)

    async def _build_engine(self) -> E:
        self._engine_builds += 1
        logger.info(f"Initializing {self.name} engine")
        try:
            engine = await self._engine_factory()
        except Exception as e:
            self._engine_task = None
            logger.error(f"{self.name} engine failed to initialize: {e}")
            raise RenderEngineError(f"{self.name} engine unavailable: {e}") from e

        self._engine = engine
        logger.info(f"{self.name} engine ready")
        return engine

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    async def render(
        self,
        key: Hashable,
        producer: Callable[[E], Awaitable[str]],
        retry_failed: bool = False,
    ) -> RenderOutcome:
        """
        Render `key` with `producer`, reusing cached or in-flight results.

        Args:
            key: Cache key; distinct inputs must map to distinct keys
            producer: Coroutine function taking the engine, returning markup
            retry_failed: Re-run the producer if the cached outcome is a failure

        Returns:
            RenderOutcome (markup is None on failure)
        """
        cached = self._results.get(key)
        if cached is not None:
            if cached.ok or not retry_failed:
                self._hits += 1
                return cached
            del self._results[key]

        task = self._pending.get(key)
        if task is None or bound_to_other_loop(task):
            self._misses += 1
            task = asyncio.ensure_future(self._produce(key, producer))
            self._pending[key] = task
        else:
            self._hits += 1

        # A cancelled consumer must not cancel the shared computation
        return await asyncio.shield(task)

    async def _produce(self, key: Hashable, producer: Callable[[E], Awaitable[str]]) -> RenderOutcome:
        this_task = asyncio.current_task()
        try:
            engine = await self.engine()
            markup = await producer(engine)
            outcome = RenderOutcome(markup=markup)
        except Exception as e:
            # Failures stay local to this key
            self._failures += 1
            logger.warning(f"{self.name} render failed: {e}")
            outcome = RenderOutcome(markup=None, error=str(e) or type(e).__name__)
        finally:
            if self._pending.get(key) is this_task:
                del self._pending[key]

        self._results[key] = outcome
        return outcome

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def peek(self, key: Hashable) -> Optional[RenderOutcome]:
        """Return the stored outcome for `key` without rendering."""
        return self._results.get(key)

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def forget(self, key: Hashable):
        """Drop the stored outcome for `key` so the next render recomputes."""
        self._results.pop(key, None)

    def clear(self):
        """Drop all stored outcomes. The engine is kept."""
        self._results.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._results),
            pending=len(self._pending),
            hits=self._hits,
            misses=self._misses,
            failures=self._failures,
            engine_builds=self._engine_builds,
        )


class RenderSlot:
    """
    Output holder for one viewer position (one code block, one diagram).

    The viewer requests a key; when the result arrives it is applied only if
    the slot still wants that key. Results for a key the learner has already
    navigated away from are discarded.

    This is the interface for consumers that await renders. The Streamlit
    app reruns the whole script instead and peeks the cache for the current
    key on every run, which gives the same stale-result guarantee.
    """

    def __init__(self):
        self._key: Optional[Hashable] = None
        self._outcome: Optional[RenderOutcome] = None

    @property
    def key(self) -> Optional[Hashable]:
        return self._key

    @property
    def outcome(self) -> Optional[RenderOutcome]:
        return self._outcome

    @property
    def is_loading(self) -> bool:
        return self._key is not None and self._outcome is None

    def request(self, key: Hashable):
        """Point the slot at `key`, clearing any output for a previous key."""
        if key != self._key:
            self._key = key
            self._outcome = None

    def apply(self, key: Hashable, outcome: RenderOutcome) -> bool:
        """Store `outcome` if `key` is still current. Returns False if stale."""
        if key != self._key:
            logger.debug("Discarding stale render result")
            return False
        self._outcome = outcome
        return True

    async def load(
        self,
        cache: AsyncRenderCache,
        key: Hashable,
        producer: Callable[[E], Awaitable[str]],
    ) -> Optional[RenderOutcome]:
        """Request `key` and render it through `cache`; None if it went stale."""
        self.request(key)
        outcome = await cache.render(key, producer)
        return outcome if self.apply(key, outcome) else None
