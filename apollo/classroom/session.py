"""
CourseSession - State of one learner working through one topic.

Ties together the topic tree, reading order, progress views, the active
lesson's sync controller and its hint states.
"""

import asyncio
import logging
from typing import Optional

from apollo.classroom.client import CourseApiClient
from apollo.classroom.hints import HintBoard
from apollo.classroom.navigator import LessonNav, NavigationIndex
from apollo.classroom.sync import ProgressSyncController
from apollo.classroom.views import ProgressViews
from apollo.schemas import LessonDetail, LessonProgress, LessonStatus, TopicFull, TopicProgress

logger = logging.getLogger(__name__)


class CourseSession:
    """
    Args:
        client: API client
        topic_id: Topic being studied
        views: Shared progress views; a private set is created if omitted
    """

    def __init__(self, client: CourseApiClient, topic_id: str, views: Optional[ProgressViews] = None):
        self.client = client
        self.topic_id = topic_id
        self.views = views or ProgressViews(client)

        self.topic: Optional[TopicFull] = None
        self.index = NavigationIndex()
        self.hints = HintBoard()
        self.active_lesson_id: Optional[str] = None
        self.controller: Optional[ProgressSyncController] = None

        self._lessons: dict[str, LessonDetail] = {}

    @property
    def is_loaded(self) -> bool:
        return self.topic is not None

    async def load(self) -> TopicFull:
        """Fetch the topic tree and its progress, then pick a lesson."""
        topic, _ = await asyncio.gather(
            self.client.fetch_topic_full(self.topic_id),
            self.views.topic_progress(self.topic_id),
        )
        self.topic = topic
        self.index.build(topic.modules)
        logger.info(f"Loaded topic {topic.id}: {len(self.index)} lessons in {len(topic.modules)} modules")

        if self.active_lesson_id in self.index:
            target = self.active_lesson_id
        else:
            target = self.index.first_lesson_id()
        if target is not None:
            self.select_lesson(target)
        return topic

    async def refresh_progress(self) -> TopicProgress:
        """Topic progress, refetched only if a write made it stale."""
        return await self.views.topic_progress(self.topic_id)

    # -------------------------------------------------------------------------
    # Lesson selection
    # -------------------------------------------------------------------------

    def select_lesson(self, lesson_id: str) -> ProgressSyncController:
        """Make `lesson_id` active. Hints and progress state start fresh."""
        if lesson_id == self.active_lesson_id and self.controller is not None:
            return self.controller

        self.active_lesson_id = lesson_id
        self.hints.switch_lesson(lesson_id)
        self.controller = ProgressSyncController(
            self.client,
            lesson_id,
            topic_id=self.topic_id,
            initial=self.lesson_progress(lesson_id),
            views=self.views,
        )
        return self.controller

    def navigation(self) -> LessonNav:
        return self.index.neighbors(self.active_lesson_id or "")

    async def lesson(self, lesson_id: str) -> LessonDetail:
        detail = self._lessons.get(lesson_id)
        if detail is None:
            detail = await self.client.fetch_lesson(lesson_id)
            self._lessons[lesson_id] = detail
        return detail

    async def active_lesson(self) -> Optional[LessonDetail]:
        if self.active_lesson_id is None:
            return None
        return await self.lesson(self.active_lesson_id)

    # -------------------------------------------------------------------------
    # Progress lookups
    # -------------------------------------------------------------------------

    def lesson_progress(self, lesson_id: str) -> Optional[LessonProgress]:
        progress = self.views.peek_topic(self.topic_id)
        if progress is None:
            return None
        return progress.by_lesson().get(lesson_id)

    def progress_map(self) -> dict[str, LessonStatus]:
        progress = self.views.peek_topic(self.topic_id)
        if progress is None:
            return {}
        return {lp.lesson_id: lp.status for lp in progress.lessons}

    def notes_map(self) -> dict[str, str]:
        progress = self.views.peek_topic(self.topic_id)
        if progress is None:
            return {}
        return {lp.lesson_id: lp.notes for lp in progress.lessons if lp.notes}

    def lesson_status(self, lesson_id: str) -> LessonStatus:
        if lesson_id == self.active_lesson_id and self.controller is not None:
            return self.controller.current().status
        return self.progress_map().get(lesson_id, LessonStatus.NOT_STARTED)

    def module_progress(self, module_id: str) -> tuple[int, int]:
        """(completed, total) lessons of one module."""
        for mod in self.index.modules:
            if mod.id == module_id:
                completed = sum(
                    1 for lesson in mod.lessons
                    if self.lesson_status(lesson.id) == LessonStatus.COMPLETED
                )
                return (completed, len(mod.lessons))
        return (0, 0)
