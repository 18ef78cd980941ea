"""
ProgressViews - Cached progress reads that writes mark stale.

Two views depend on lesson progress writes:
- ("progress", "topic", topic_id): per-lesson status and notes of one topic
- ("progress", "summary"): completion counts across all topics

A view is fetched once and served from memory until it is invalidated.
Concurrent reads of the same view share one request.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Hashable, Optional

from apollo.classroom.client import CourseApiClient
from apollo.schemas import ProgressSummary, TopicProgress
from apollo.utils.loop import bound_to_other_loop

logger = logging.getLogger(__name__)

SUMMARY_KEY = ("progress", "summary")


def topic_key(topic_id: str) -> tuple[str, str, str]:
    return ("progress", "topic", topic_id)


class ProgressViews:
    """Read-through cache of the progress views backed by a CourseApiClient."""

    def __init__(self, client: CourseApiClient):
        self._client = client
        self._values: dict[Hashable, Any] = {}
        self._stale: set[Hashable] = set()
        self._inflight: dict[Hashable, asyncio.Task] = {}
        self._generation: dict[Hashable, int] = {}

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def topic_progress(self, topic_id: str) -> TopicProgress:
        return await self._get(topic_key(topic_id), lambda: self._client.fetch_topic_progress(topic_id))

    async def summary(self) -> ProgressSummary:
        return await self._get(SUMMARY_KEY, self._client.fetch_progress_summary)

    def peek_topic(self, topic_id: str) -> Optional[TopicProgress]:
        """Last fetched topic progress, stale or not."""
        return self._values.get(topic_key(topic_id))

    def peek_summary(self) -> Optional[ProgressSummary]:
        return self._values.get(SUMMARY_KEY)

    async def _get(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        if key in self._values and key not in self._stale:
            return self._values[key]

        task = self._inflight.get(key)
        if task is None or bound_to_other_loop(task):
            generation = self._generation.get(key, 0)
            task = asyncio.ensure_future(self._load(key, loader, generation))
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _load(self, key: Hashable, loader: Callable[[], Awaitable[Any]], generation: int) -> Any:
        try:
            value = await loader()
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

        if self._generation.get(key, 0) == generation:
            self._values[key] = value
            self._stale.discard(key)
        else:
            logger.debug(f"Discarding progress view {key} fetched before invalidation")
        return value

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    def invalidate(self, key: Hashable):
        """Mark a view stale. A fetch already in flight is not reused."""
        self._generation[key] = self._generation.get(key, 0) + 1
        self._inflight.pop(key, None)
        if key in self._values:
            self._stale.add(key)

    def invalidate_topic(self, topic_id: str):
        self.invalidate(topic_key(topic_id))

    def invalidate_summary(self):
        self.invalidate(SUMMARY_KEY)

    def invalidate_all(self):
        for key in list(self._values):
            self.invalidate(key)

    def is_stale(self, key: Hashable) -> bool:
        """True if the view was never fetched or was invalidated since."""
        return key not in self._values or key in self._stale
