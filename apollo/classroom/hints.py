"""
Hint disclosure state for exercises.

Hints are revealed one at a time. State is per exercise instance, lives only
for the current lesson view, and is never persisted.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class HintRevealState:
    """Monotonic revealed-hint counter for one exercise."""
    total: int
    revealed_count: int = 0

    def __post_init__(self):
        if self.total < 0:
            raise ValueError(f"total must not be negative, got {self.total}")
        self.revealed_count = max(0, min(self.revealed_count, self.total))

    @property
    def has_more(self) -> bool:
        return self.revealed_count < self.total

    def reveal(self) -> int:
        """Reveal the next hint; a no-op once all hints are shown."""
        if self.has_more:
            self.revealed_count += 1
        return self.revealed_count

    def is_revealed(self, index: int) -> bool:
        return 0 <= index < self.revealed_count

    def visible(self, hints: list[str]) -> list[str]:
        return hints[:self.revealed_count]

    def reset(self):
        self.revealed_count = 0


@dataclass
class HintBoard:
    """
    Hint states for the exercises of the lesson being viewed.

    Switching to another lesson drops every state, so exercises start with
    all hints hidden again.
    """
    lesson_id: Optional[str] = None
    _states: dict[int, HintRevealState] = field(default_factory=dict)

    def switch_lesson(self, lesson_id: Optional[str]):
        if lesson_id != self.lesson_id:
            self.lesson_id = lesson_id
            self._states.clear()

    def state_for(self, index: int, total: int) -> HintRevealState:
        state = self._states.get(index)
        if state is None or state.total != total:
            state = HintRevealState(total=total)
            self._states[index] = state
        return state

    def reveal(self, index: int, total: int) -> int:
        return self.state_for(index, total).reveal()
