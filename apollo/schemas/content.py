"""
Lesson content schemas for Apollo.

Defines Pydantic models for lesson material including:
- Content sections (tagged union on `type`)
- Exercises with progressive hints
- Review questions
- Full lesson detail as served by GET /lessons/{id}
"""

import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
)

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Content sections
# -----------------------------------------------------------------------------

class SectionBase(BaseModel):
    # Sections are read-only once received
    model_config = ConfigDict(frozen=True)

    type: str


class TextSection(SectionBase):
    type: Literal["text"] = "text"
    body: str  # Markdown


class CodeSection(SectionBase):
    type: Literal["code"] = "code"
    language: str
    code: str
    title: Optional[str] = None
    explanation: Optional[str] = None


CalloutVariant = Literal["info", "tip", "warning", "prerequisite"]


class CalloutSection(SectionBase):
    type: Literal["callout"] = "callout"
    variant: CalloutVariant
    body: str
    concept_ref: Optional[str] = None


class DiagramSection(SectionBase):
    """
    A diagram. `graph` sources are Graphviz DOT text laid out by the diagram
    engine; `image` sources are image URLs shown as-is. `mermaid` sources
    are accepted but cannot be laid out, so only their text is shown.
    """
    type: Literal["diagram"] = "diagram"
    format: Literal["graph", "image", "mermaid"]
    source: str
    title: Optional[str] = None


class TableSection(SectionBase):
    type: Literal["table"] = "table"
    headers: list[str]
    rows: list[list[str]]


class ImageSection(SectionBase):
    type: Literal["image"] = "image"
    url: str
    alt: str
    caption: Optional[str] = None


class UnknownSection(SectionBase):
    """
    Section with a tag this viewer does not know, or a known tag whose
    payload failed validation. Kept so the lesson still renders.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    reason: Optional[str] = None


SECTION_TYPES = ("text", "code", "callout", "diagram", "table", "image")


def _section_tag(value: Any) -> str:
    if isinstance(value, dict):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    if isinstance(value, UnknownSection) or tag not in SECTION_TYPES:
        return "unknown"
    return tag


ContentSection = Annotated[
    Union[
        Annotated[TextSection, Tag("text")],
        Annotated[CodeSection, Tag("code")],
        Annotated[CalloutSection, Tag("callout")],
        Annotated[DiagramSection, Tag("diagram")],
        Annotated[TableSection, Tag("table")],
        Annotated[ImageSection, Tag("image")],
        Annotated[UnknownSection, Tag("unknown")],
    ],
    Discriminator(_section_tag),
]

_section_adapter = TypeAdapter(ContentSection)


def parse_section(raw: Any) -> ContentSection:
    """
    Parse one raw section, never raising for bad data.

    Unknown tags become UnknownSection; known tags with an invalid payload
    become UnknownSection carrying the tag and the validation message.
    """
    if isinstance(raw, SectionBase):
        return raw
    if not isinstance(raw, dict):
        return UnknownSection(type=type(raw).__name__, reason="section is not an object")
    try:
        return _section_adapter.validate_python(raw)
    except ValidationError as e:
        tag = str(raw.get("type", "missing"))
        logger.warning(f"Invalid {tag} section: {e.error_count()} validation error(s)")
        return UnknownSection(type=tag, reason=f"invalid {tag} section")


def parse_sections(raw: Any) -> list[ContentSection]:
    """Parse lesson content given as a list or as a {"sections": [...]} envelope."""
    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = raw.get("sections") or []
    if not isinstance(raw, list):
        raise ValueError("lesson content must be a list of sections")
    return [parse_section(item) for item in raw]


# -----------------------------------------------------------------------------
# Exercises and review questions
# -----------------------------------------------------------------------------

ExerciseType = Literal[
    "command",
    "configuration",
    "exploration",
    "build",
    "troubleshooting",
    "scenario",
    "thought_experiment",
    "hands_on",
]


class Exercise(BaseModel):
    type: str  # one of ExerciseType; unknown types still display
    title: str
    instructions: str  # Markdown
    environment: Optional[str] = None
    success_criteria: list[str] = []
    hints: list[str] = []

    @field_validator("success_criteria", "hints", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if v is not None else []


class ReviewQuestion(BaseModel):
    question: str
    answer: str
    concepts_tested: list[str] = []

    @field_validator("concepts_tested", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if v is not None else []


class Example(BaseModel):
    title: str
    description: Optional[str] = None
    code: Optional[str] = None
    explanation: Optional[str] = None


# -----------------------------------------------------------------------------
# Lesson detail
# -----------------------------------------------------------------------------

class LessonDetail(BaseModel):
    id: str
    module_id: str
    title: str
    sort_order: int = 0
    estimated_minutes: Optional[int] = None
    content: list[ContentSection] = []
    examples: list[Example] = []
    exercises: list[Exercise] = []
    review_questions: list[ReviewQuestion] = []

    @field_validator("content", mode="before")
    @classmethod
    def _parse_content(cls, v):
        return parse_sections(v)

    @field_validator("examples", "exercises", "review_questions", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v if v is not None else []
