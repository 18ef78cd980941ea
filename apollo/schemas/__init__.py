"""
Apollo Schemas - Pydantic models for the lesson viewer.

This module exports all schema classes for:
- Content: content sections, exercises, review questions, lesson detail
- Curriculum: topics, modules, lessons, concepts
- Progress: lesson status, topic progress, completion summary
"""

# Content schemas
from .content import (
    SectionBase,
    TextSection,
    CodeSection,
    CalloutSection,
    CalloutVariant,
    DiagramSection,
    TableSection,
    ImageSection,
    UnknownSection,
    ContentSection,
    SECTION_TYPES,
    parse_section,
    parse_sections,
    Exercise,
    ExerciseType,
    ReviewQuestion,
    Example,
    LessonDetail,
)

# Curriculum schemas
from .curriculum import (
    ConceptSummary,
    TopicSummary,
    LessonFull,
    ModuleFull,
    TopicFull,
)

# Progress schemas
from .progress import (
    LessonStatus,
    LessonProgress,
    TopicProgress,
    ProgressSummary,
    UpdateProgressInput,
)

__all__ = [
    # Content
    'SectionBase',
    'TextSection',
    'CodeSection',
    'CalloutSection',
    'CalloutVariant',
    'DiagramSection',
    'TableSection',
    'ImageSection',
    'UnknownSection',
    'ContentSection',
    'SECTION_TYPES',
    'parse_section',
    'parse_sections',
    'Exercise',
    'ExerciseType',
    'ReviewQuestion',
    'Example',
    'LessonDetail',
    # Curriculum
    'ConceptSummary',
    'TopicSummary',
    'LessonFull',
    'ModuleFull',
    'TopicFull',
    # Progress
    'LessonStatus',
    'LessonProgress',
    'TopicProgress',
    'ProgressSummary',
    'UpdateProgressInput',
]
