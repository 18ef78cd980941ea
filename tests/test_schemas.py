"""
Schema validation tests for Apollo.

Tests the Pydantic models to ensure they validate correctly.
"""

import pytest
from pydantic import ValidationError

from apollo.schemas import (
    # Content
    TextSection,
    CodeSection,
    CalloutSection,
    DiagramSection,
    TableSection,
    ImageSection,
    UnknownSection,
    parse_section,
    parse_sections,
    Exercise,
    LessonDetail,
    # Curriculum
    TopicFull,
    # Progress
    LessonStatus,
    LessonProgress,
    TopicProgress,
    UpdateProgressInput,
)


class TestSectionParsing:
    """Test the tagged content section union."""

    def test_text_section(self):
        section = parse_section({"type": "text", "body": "Hello"})
        assert isinstance(section, TextSection)
        assert section.body == "Hello"

    def test_code_section_optional_fields(self):
        section = parse_section({"type": "code", "language": "go", "code": "package main"})
        assert isinstance(section, CodeSection)
        assert section.title is None
        assert section.explanation is None

    def test_callout_section(self):
        section = parse_section({"type": "callout", "variant": "tip", "body": "Try it", "concept_ref": "c1"})
        assert isinstance(section, CalloutSection)
        assert section.concept_ref == "c1"

    def test_diagram_section(self):
        section = parse_section({"type": "diagram", "format": "graph", "source": "digraph { a -> b }"})
        assert isinstance(section, DiagramSection)
        assert section.format == "graph"

    def test_mermaid_diagram_accepted(self):
        section = parse_section({"type": "diagram", "format": "mermaid", "source": "graph TD; A-->B"})
        assert isinstance(section, DiagramSection)
        assert section.format == "mermaid"

    def test_table_section(self):
        section = parse_section({"type": "table", "headers": ["A"], "rows": [["1"], ["2"]]})
        assert isinstance(section, TableSection)
        assert section.rows == [["1"], ["2"]]

    def test_image_section(self):
        section = parse_section({"type": "image", "url": "https://x.test/a.png", "alt": "A"})
        assert isinstance(section, ImageSection)

    def test_unknown_tag_kept(self):
        section = parse_section({"type": "video", "url": "https://x.test/v.mp4"})
        assert isinstance(section, UnknownSection)
        assert section.type == "video"
        assert section.reason is None

    def test_invalid_payload_becomes_unknown(self):
        section = parse_section({"type": "callout", "variant": "shout", "body": "Hey"})
        assert isinstance(section, UnknownSection)
        assert section.type == "callout"
        assert section.reason == "invalid callout section"

    def test_missing_tag(self):
        section = parse_section({"body": "no tag"})
        assert isinstance(section, UnknownSection)

    def test_non_object_section(self):
        section = parse_section("text")
        assert isinstance(section, UnknownSection)
        assert section.reason == "section is not an object"

    def test_sections_are_frozen(self):
        section = parse_section({"type": "text", "body": "Hello"})
        with pytest.raises(ValidationError):
            section.body = "Changed"

    def test_parse_sections_envelope(self):
        sections = parse_sections({"sections": [{"type": "text", "body": "a"}, {"type": "quiz"}]})
        assert [s.type for s in sections] == ["text", "quiz"]

    def test_parse_sections_list_and_none(self):
        assert parse_sections(None) == []
        assert len(parse_sections([{"type": "text", "body": "a"}])) == 1

    def test_parse_sections_rejects_scalar(self):
        with pytest.raises(ValueError):
            parse_sections("not a list")


class TestLessonSchemas:
    """Test lesson detail and topic tree models."""

    def test_lesson_detail_parses_content(self):
        lesson = LessonDetail.model_validate({
            "id": "l1",
            "module_id": "m1",
            "title": "Intro",
            "content": {"sections": [{"type": "text", "body": "Hi"}, {"type": "poll"}]},
            "exercises": None,
            "review_questions": None,
        })
        assert isinstance(lesson.content[0], TextSection)
        assert isinstance(lesson.content[1], UnknownSection)
        assert lesson.exercises == []
        assert lesson.review_questions == []

    def test_exercise_unknown_type_allowed(self):
        exercise = Exercise(type="puzzle", title="T", instructions="Do it", hints=None)
        assert exercise.hints == []

    def test_topic_full_nested(self):
        topic = TopicFull.model_validate({
            "id": "t1",
            "title": "Topic",
            "modules": [{
                "id": "m1",
                "topic_id": "t1",
                "title": "Module",
                "sort_order": 1,
                "lessons": [{"id": "l1", "module_id": "m1", "title": "Lesson", "sort_order": 1,
                             "content": [{"type": "text", "body": "x"}], "concepts": None}],
            }],
        })
        lesson = topic.modules[0].lessons[0]
        assert isinstance(lesson.content[0], TextSection)
        assert lesson.concepts == []


class TestProgressSchemas:
    """Test progress-related schemas."""

    def test_lesson_status_values(self):
        assert LessonStatus.NOT_STARTED.value == "not_started"
        assert LessonStatus.IN_PROGRESS.value == "in_progress"
        assert LessonStatus.COMPLETED.value == "completed"

    def test_lesson_progress_blank_fields(self):
        progress = LessonProgress(lesson_id="l1", status="completed", notes="", completed_at="")
        assert progress.status == LessonStatus.COMPLETED
        assert progress.notes is None
        assert progress.completed_at is None

    def test_lesson_progress_invalid_status(self):
        with pytest.raises(ValidationError):
            LessonProgress(lesson_id="l1", status="done")

    def test_topic_progress_by_lesson(self):
        progress = TopicProgress(topic_id="t1", lessons=[
            {"lesson_id": "l1", "status": "completed"},
            {"lesson_id": "l2", "status": "in_progress", "notes": "later"},
        ])
        by_lesson = progress.by_lesson()
        assert by_lesson["l2"].notes == "later"
        assert by_lesson["l1"].status == LessonStatus.COMPLETED

    def test_update_payload_omits_missing_notes(self):
        assert UpdateProgressInput(status=LessonStatus.COMPLETED).to_payload() == {"status": "completed"}
        payload = UpdateProgressInput(status=LessonStatus.IN_PROGRESS, notes="n").to_payload()
        assert payload == {"status": "in_progress", "notes": "n"}
