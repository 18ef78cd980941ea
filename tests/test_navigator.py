"""
Tests for lesson ordering and previous/next navigation.
"""

from apollo.classroom import NavigationIndex, sort_modules
from apollo.schemas import ModuleFull


def module(module_id: str, sort_order: int, lessons: list[tuple[str, int]], concepts=None) -> ModuleFull:
    return ModuleFull.model_validate({
        "id": module_id,
        "topic_id": "t1",
        "title": f"Module {module_id}",
        "sort_order": sort_order,
        "lessons": [
            {
                "id": lesson_id,
                "module_id": module_id,
                "title": f"Lesson {lesson_id}",
                "sort_order": order,
                "concepts": (concepts or {}).get(lesson_id),
            }
            for lesson_id, order in lessons
        ],
    })


def three_lessons() -> list[ModuleFull]:
    # m1 -> A, B and m2 -> C, given out of order
    return [
        module("m2", 2, [("C", 1)]),
        module("m1", 1, [("B", 2), ("A", 1)]),
    ]


class TestOrdering:
    """Sorting of modules and lessons."""

    def test_flat_sequence_crosses_modules(self):
        index = NavigationIndex(three_lessons())
        assert [e.id for e in index.entries] == ["A", "B", "C"]

    def test_sort_does_not_modify_input(self):
        modules = three_lessons()
        sort_modules(modules)
        assert modules[0].id == "m2"
        assert [lesson.id for lesson in modules[1].lessons] == ["B", "A"]

    def test_ties_broken_by_id(self):
        index = NavigationIndex([
            module("mb", 1, [("y", 1), ("x", 1)]),
            module("ma", 1, [("z", 1)]),
        ])
        assert [e.id for e in index.entries] == ["z", "x", "y"]

    def test_duplicate_lesson_keeps_first_position(self):
        index = NavigationIndex([module("m1", 1, [("A", 1)]), module("m2", 2, [("A", 1), ("B", 2)])])
        assert [e.id for e in index.entries] == ["A", "B"]
        assert index.module_of("A") == "m1"

    def test_empty(self):
        index = NavigationIndex()
        assert len(index) == 0
        assert index.first_lesson_id() is None


class TestNeighbors:
    """Previous/next lookup."""

    def test_first_lesson(self):
        nav = NavigationIndex(three_lessons()).neighbors("A")
        assert nav.prev is None
        assert nav.next.id == "B"

    def test_middle_lesson_crosses_module(self):
        index = NavigationIndex(three_lessons())
        nav = index.neighbors("B")
        assert nav.prev.id == "A"
        assert nav.next.id == "C"
        assert nav.next.title == "Lesson C"

    def test_last_lesson(self):
        nav = NavigationIndex(three_lessons()).neighbors("C")
        assert nav.prev.id == "B"
        assert nav.next is None

    def test_unknown_lesson(self):
        nav = NavigationIndex(three_lessons()).neighbors("Z")
        assert nav.prev is None
        assert nav.next is None

    def test_id_helpers(self):
        index = NavigationIndex(three_lessons())
        assert index.get_next_lesson_id("A") == "B"
        assert index.get_previous_lesson_id("A") is None
        assert index.get_previous_lesson_id("C") == "B"


class TestLookups:
    """Position, module and concept lookups."""

    def test_position(self):
        index = NavigationIndex(three_lessons())
        assert index.position("A") == (1, 3)
        assert index.position("C") == (3, 3)
        assert index.position("Z") == (0, 3)

    def test_membership(self):
        index = NavigationIndex(three_lessons())
        assert "B" in index
        assert "Z" not in index
        assert index.total_lessons == 3

    def test_lesson_and_module(self):
        index = NavigationIndex(three_lessons())
        assert index.lesson("C").title == "Lesson C"
        assert index.module_of("C") == "m2"
        assert index.lesson("Z") is None

    def test_concepts(self):
        concepts = {"A": [{"id": "c1", "name": "Images"}]}
        index = NavigationIndex([module("m1", 1, [("A", 1), ("B", 2)], concepts=concepts)])
        assert [c.name for c in index.concepts_for("A")] == ["Images"]
        assert index.concepts_for("B") == []

    def test_rebuild(self):
        index = NavigationIndex(three_lessons())
        index.build([module("m9", 1, [("Q", 1)])])
        assert [e.id for e in index.entries] == ["Q"]
        assert "A" not in index
