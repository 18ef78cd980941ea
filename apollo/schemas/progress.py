"""
Progress tracking schemas for Apollo.

Defines Pydantic models for learner progress including:
- Lesson status and notes
- Topic-scoped progress snapshot
- Cross-topic completion summary
- Progress write payload
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class LessonStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LessonProgress(BaseModel):
    lesson_id: str
    lesson_title: Optional[str] = None
    status: LessonStatus = LessonStatus.NOT_STARTED
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None  # set by the server only
    notes: Optional[str] = None

    @field_validator("lesson_title", "started_at", "completed_at", "notes", mode="before")
    @classmethod
    def _empty_to_none(cls, v):
        # The API omits or blanks unset optional strings
        return None if v == "" else v


class TopicProgress(BaseModel):
    topic_id: str
    lessons: list[LessonProgress] = []

    @field_validator("lessons", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if v is not None else []

    def by_lesson(self) -> dict[str, LessonProgress]:
        return {lp.lesson_id: lp for lp in self.lessons}


class ProgressSummary(BaseModel):
    total_lessons: int
    completed_lessons: int
    completion_percentage: float
    active_topics: int


class UpdateProgressInput(BaseModel):
    """Body of PUT /progress/lessons/{id}."""
    status: LessonStatus
    notes: Optional[str] = None

    def to_payload(self) -> dict:
        payload = {"status": self.status.value}
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload
