"""
Curriculum schemas for Apollo.

Mirrors the topic tree served by GET /topics and GET /topics/{id}/full:
topic -> modules -> lessons, with concept references per lesson.
"""

from typing import Optional

from pydantic import BaseModel, field_validator

from .content import ContentSection, parse_sections


class ConceptSummary(BaseModel):
    id: str
    name: str
    definition: str = ""
    difficulty: Optional[str] = None
    status: str = "active"
    defined_in_topic: Optional[str] = None
    aliases: list[str] = []


class TopicSummary(BaseModel):
    """Topic list entry (GET /topics)."""
    id: str
    title: str
    description: Optional[str] = None
    difficulty: Optional[str] = None
    estimated_hours: Optional[float] = None
    tags: list[str] = []
    status: str = "published"
    module_count: int = 0


class LessonFull(BaseModel):
    id: str
    module_id: str
    title: str
    sort_order: int
    estimated_minutes: Optional[int] = None
    content: list[ContentSection] = []
    concepts: list[ConceptSummary] = []

    @field_validator("content", mode="before")
    @classmethod
    def _parse_content(cls, v):
        return parse_sections(v)

    @field_validator("concepts", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if v is not None else []


class ModuleFull(BaseModel):
    id: str
    topic_id: str
    title: str
    description: Optional[str] = None
    learning_objectives: list[str] = []
    estimated_minutes: Optional[int] = None
    sort_order: int
    lessons: list[LessonFull] = []

    @field_validator("learning_objectives", "lessons", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if v is not None else []


class TopicFull(BaseModel):
    """Topic with nested modules and lessons (GET /topics/{id}/full)."""
    id: str
    title: str
    description: Optional[str] = None
    difficulty: Optional[str] = None
    estimated_hours: Optional[float] = None
    tags: list[str] = []
    status: str = "published"
    version: int = 1
    modules: list[ModuleFull] = []

    @field_validator("tags", "modules", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if v is not None else []
