"""
NavigationIndex - Reading order and previous/next lookup for a topic.

Provides:
- Module and lesson ordering by sort key, ties broken by id
- Flattened lesson sequence across module boundaries
- Previous/next neighbors and lesson position
- Lesson -> module and lesson -> concept lookups
"""

from dataclasses import dataclass
from typing import Optional

from apollo.schemas import ConceptSummary, LessonFull, ModuleFull


@dataclass(frozen=True)
class NavTarget:
    """Lesson reference used by previous/next navigation."""
    id: str
    title: str


@dataclass(frozen=True)
class LessonNav:
    prev: Optional[NavTarget]
    next: Optional[NavTarget]


def sort_modules(modules: list[ModuleFull]) -> list[ModuleFull]:
    """
    Order modules by sort_order, and each module's lessons by sort_order.

    Equal sort keys are ordered by id so the sequence does not depend on the
    order the API returned them in. Input models are not modified.
    """
    ordered = sorted(modules, key=lambda m: (m.sort_order, m.id))
    return [
        mod.model_copy(update={"lessons": sorted(mod.lessons, key=lambda lesson: (lesson.sort_order, lesson.id))})
        for mod in ordered
    ]


class NavigationIndex:
    """
    Flattened reading order of one topic's lessons.

    Rebuild (call `build` again or create a new index) whenever the module
    tree changes.
    """

    def __init__(self, modules: Optional[list[ModuleFull]] = None):
        self.modules: list[ModuleFull] = []
        self._lesson_order: list[NavTarget] = []
        self._lesson_index: dict[str, int] = {}
        self._lesson_module: dict[str, str] = {}
        self._lesson_concepts: dict[str, list[ConceptSummary]] = {}
        self.build(modules or [])

    def build(self, modules: list[ModuleFull]) -> "NavigationIndex":
        """Sort the tree and rebuild the flat sequence and position map."""
        self.modules = sort_modules(modules)
        self._lesson_order = []
        self._lesson_index = {}
        self._lesson_module = {}
        self._lesson_concepts = {}

        for mod in self.modules:
            for lesson in mod.lessons:
                if lesson.id in self._lesson_index:
                    # First occurrence keeps its position
                    continue
                self._lesson_index[lesson.id] = len(self._lesson_order)
                self._lesson_order.append(NavTarget(id=lesson.id, title=lesson.title))
                self._lesson_module[lesson.id] = mod.id
                if lesson.concepts:
                    self._lesson_concepts[lesson.id] = lesson.concepts
        return self

    def __len__(self) -> int:
        return len(self._lesson_order)

    def __contains__(self, lesson_id: object) -> bool:
        return lesson_id in self._lesson_index

    @property
    def total_lessons(self) -> int:
        return len(self._lesson_order)

    @property
    def entries(self) -> list[NavTarget]:
        return list(self._lesson_order)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def neighbors(self, lesson_id: str) -> LessonNav:
        """Previous and next lesson; both None if `lesson_id` is unknown."""
        idx = self._lesson_index.get(lesson_id)
        if idx is None:
            return LessonNav(prev=None, next=None)
        prev = self._lesson_order[idx - 1] if idx > 0 else None
        nxt = self._lesson_order[idx + 1] if idx + 1 < len(self._lesson_order) else None
        return LessonNav(prev=prev, next=nxt)

    def get_next_lesson_id(self, current_id: str) -> Optional[str]:
        nxt = self.neighbors(current_id).next
        return nxt.id if nxt else None

    def get_previous_lesson_id(self, current_id: str) -> Optional[str]:
        prev = self.neighbors(current_id).prev
        return prev.id if prev else None

    def first_lesson_id(self) -> Optional[str]:
        return self._lesson_order[0].id if self._lesson_order else None

    def position(self, lesson_id: str) -> tuple[int, int]:
        """
        Get lesson position as (current, total), 1-based.

        Returns (0, total) if lesson not found.
        """
        if lesson_id not in self._lesson_index:
            return (0, len(self._lesson_order))
        return (self._lesson_index[lesson_id] + 1, len(self._lesson_order))

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def lesson(self, lesson_id: str) -> Optional[LessonFull]:
        module_id = self._lesson_module.get(lesson_id)
        if module_id is None:
            return None
        for mod in self.modules:
            if mod.id == module_id:
                for lesson in mod.lessons:
                    if lesson.id == lesson_id:
                        return lesson
        return None

    def module_of(self, lesson_id: str) -> Optional[str]:
        return self._lesson_module.get(lesson_id)

    def concepts_for(self, lesson_id: str) -> list[ConceptSummary]:
        return self._lesson_concepts.get(lesson_id, [])
