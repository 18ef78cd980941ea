"""
ProgressSyncController - Optimistic lesson progress and notes writes.

Holds three layers for one lesson:
- the last snapshot the server confirmed
- the learner's unsaved notes buffer
- the write currently in flight, shown optimistically

Edits are never blocked by writes. When writes overlap, the last one issued
decides local state and responses to earlier writes are ignored.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from apollo.classroom.client import CourseApiClient
from apollo.classroom.views import ProgressViews
from apollo.errors import ApiError
from apollo.schemas import LessonProgress, LessonStatus

logger = logging.getLogger(__name__)

SAVED_FEEDBACK_SECONDS = 2.0


class SaveState(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressSnapshot:
    status: LessonStatus
    notes: str = ""

    @property
    def is_completed(self) -> bool:
        return self.status == LessonStatus.COMPLETED


@dataclass(frozen=True)
class PendingWrite:
    seq: int
    status: LessonStatus
    notes: Optional[str]


class ProgressSyncController:
    """
    Progress state of one lesson, reconciled with the server.

    Args:
        client: API client used for writes
        lesson_id: Lesson being tracked
        topic_id: Topic whose progress view the writes affect
        initial: Server progress for the lesson, if any
        views: Dependent views to invalidate after writes
        saved_feedback_seconds: How long the "saved" acknowledgement lasts
    """

    def __init__(
        self,
        client: CourseApiClient,
        lesson_id: str,
        topic_id: Optional[str] = None,
        initial: Optional[LessonProgress] = None,
        views: Optional[ProgressViews] = None,
        saved_feedback_seconds: float = SAVED_FEEDBACK_SECONDS,
    ):
        self._client = client
        self.lesson_id = lesson_id
        self.topic_id = topic_id
        self._views = views
        self.saved_feedback_seconds = saved_feedback_seconds

        if initial is not None:
            self.server_snapshot = ProgressSnapshot(initial.status, initial.notes or "")
        else:
            self.server_snapshot = ProgressSnapshot(LessonStatus.NOT_STARTED)
        self.local_notes: Optional[str] = None
        self.pending_write: Optional[PendingWrite] = None

        self.save_state = SaveState.IDLE
        self.error: Optional[str] = None

        self._issued_seq = 0
        self._applied_seq = 0
        self._saved_timer: Optional[asyncio.TimerHandle] = None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def current(self) -> ProgressSnapshot:
        """Effective status and notes as the learner should see them."""
        base = self.server_snapshot
        status = base.status
        notes = base.notes
        if self.pending_write is not None:
            status = self.pending_write.status
            if self.pending_write.notes is not None:
                notes = self.pending_write.notes
        if self.local_notes is not None:
            notes = self.local_notes
        return ProgressSnapshot(status, notes)

    @property
    def is_completed(self) -> bool:
        return self.current().is_completed

    @property
    def is_writing(self) -> bool:
        return self.pending_write is not None

    @property
    def has_unsaved_notes(self) -> bool:
        return self.local_notes is not None and self.local_notes != self.server_snapshot.notes

    # -------------------------------------------------------------------------
    # Edits and writes
    # -------------------------------------------------------------------------

    def edit_notes(self, notes: str):
        self.local_notes = notes

    def dismiss_error(self):
        self.error = None
        if self.save_state == SaveState.ERROR:
            self.save_state = SaveState.IDLE

    async def mark_complete(self, notes: Optional[str] = None) -> bool:
        if notes is None:
            notes = self.current().notes
        return await self._write(LessonStatus.COMPLETED, notes)

    async def save_notes(self, notes: Optional[str] = None) -> bool:
        """Write notes with the current status; acknowledged with "saved"."""
        if notes is None:
            notes = self.current().notes
        return await self._write(self.current().status, notes, acknowledge=True)

    async def set_status(self, status: LessonStatus, notes: Optional[str] = None) -> bool:
        if notes is None:
            notes = self.current().notes
        return await self._write(status, notes)

    async def _write(self, status: LessonStatus, notes: Optional[str], acknowledge: bool = False) -> bool:
        """
        Issue one write. Returns False if it failed.

        ApiError is reported through `error`; anything else propagates.
        """
        self._issued_seq += 1
        write = PendingWrite(seq=self._issued_seq, status=status, notes=notes)
        self.pending_write = write
        previous_status = self.server_snapshot.status
        if acknowledge:
            self._cancel_saved_timer()
            self.save_state = SaveState.SAVING

        try:
            result = await self._client.update_lesson_progress(self.lesson_id, status, notes)
        except ApiError as e:
            if write.seq < self._issued_seq:
                logger.info(f"Ignoring failure of superseded write {write.seq} for lesson {self.lesson_id}: {e}")
                return False
            logger.warning(f"Progress write failed for lesson {self.lesson_id}: {e}")
            self.error = str(e)
            self.save_state = SaveState.ERROR
            return False
        except BaseException:
            # Cancelled, or a failure that is not an ApiError
            if acknowledge and write.seq == self._issued_seq:
                self.save_state = SaveState.IDLE
            raise
        finally:
            if self.pending_write is write:
                self.pending_write = None

        if write.seq < self._applied_seq:
            logger.debug(f"Ignoring stale response to write {write.seq} for lesson {self.lesson_id}")
            # Committed all the same, possibly after the newer write
            self._invalidate_views(previous_status, result.status)
            return True

        self._applied_seq = write.seq
        self.server_snapshot = ProgressSnapshot(result.status, result.notes or "")
        if self.local_notes is not None and self.local_notes == (notes or ""):
            # Typing that happened during the write stays in the buffer
            self.local_notes = None

        if write.seq == self._issued_seq:
            self.error = None
            if acknowledge:
                self.save_state = SaveState.SAVED
                self._schedule_saved_clear()
            elif self.save_state == SaveState.ERROR:
                self.save_state = SaveState.IDLE

        self._invalidate_views(previous_status, result.status)
        return True

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _invalidate_views(self, previous: LessonStatus, new: LessonStatus):
        if self._views is None:
            return
        if self.topic_id is not None:
            self._views.invalidate_topic(self.topic_id)
        if previous != new or new == LessonStatus.COMPLETED:
            self._views.invalidate_summary()

    def _schedule_saved_clear(self):
        loop = asyncio.get_running_loop()
        self._saved_timer = loop.call_later(self.saved_feedback_seconds, self._clear_saved)

    def _cancel_saved_timer(self):
        if self._saved_timer is not None:
            self._saved_timer.cancel()
            self._saved_timer = None

    def _clear_saved(self):
        self._saved_timer = None
        if self.save_state == SaveState.SAVED:
            self.save_state = SaveState.IDLE
