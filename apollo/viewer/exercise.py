"""
Exercise and review question rendering.

Provides:
- Exercise cards with instructions, environment and success criteria
- Progressive hint display driven by HintRevealState
- Collapsible review questions
"""

import html
from typing import Optional

from apollo.classroom.hints import HintRevealState
from apollo.schemas import Exercise, LessonDetail, ReviewQuestion

from .sections import CodeLookup, render_markdown


def get_exercise_css() -> str:
    """Get CSS styles for exercise and review display."""
    return """
    <style>
    .exercise-card {
        border: 1px solid #e5e7eb;
        border-radius: 8px;
        padding: 1.2em;
        margin: 1em 0;
        background: white;
    }
    .exercise-title {
        font-weight: 600;
        color: #111827;
    }
    .exercise-type {
        background: #e0e7ff;
        color: #4338ca;
        border-radius: 4px;
        padding: 0.1em 0.5em;
        font-size: 0.75em;
        margin-left: 0.5em;
    }
    .exercise-environment {
        font-size: 0.8em;
        color: #6b7280;
    }
    .exercise-criteria-label {
        font-size: 0.8em;
        font-weight: 500;
        color: #6b7280;
        margin-top: 1em;
    }
    .exercise-hint {
        background: #fffbeb;
        color: #92400e;
        border-radius: 4px;
        padding: 0.5em 0.8em;
        margin-top: 0.5em;
        font-size: 0.9em;
    }
    .review-question {
        border: 1px solid #f3f4f6;
        background: #f9fafb;
        border-radius: 4px;
        margin: 0.5em 0;
    }
    .review-question summary {
        cursor: pointer;
        padding: 0.6em 1em;
        font-weight: 500;
    }
    .review-answer {
        border-top: 1px solid #f3f4f6;
        padding: 0.6em 1em;
        color: #374151;
    }
    </style>
    """


def hint_button_label(state: HintRevealState) -> str:
    return f"Show hint {state.revealed_count + 1} of {state.total}"


def render_hints(hints: list[str], state: HintRevealState, code_lookup: Optional[CodeLookup] = None) -> str:
    """Render the hints revealed so far."""
    parts = []
    for i, hint in enumerate(state.visible(hints)):
        parts.append(
            f'<div class="exercise-hint"><strong>Hint {i + 1}:</strong>'
            f'{render_markdown(hint, code_lookup)}</div>'
        )
    return ''.join(parts)


def render_exercise(
    exercise: Exercise,
    index: int,
    state: Optional[HintRevealState] = None,
    code_lookup: Optional[CodeLookup] = None,
) -> str:
    """
    Render one exercise card.

    Args:
        exercise: Exercise to render
        index: 0-based position in the lesson
        state: Hint state; no hints are shown without one
        code_lookup: Highlighted markup for fenced code in instructions/hints

    Returns:
        HTML string
    """
    parts = ['<div class="exercise-card">']
    parts.append(
        f'<div><span class="exercise-title">Exercise {index + 1}: {html.escape(exercise.title)}</span>'
        f'<span class="exercise-type">{html.escape(exercise.type)}</span></div>'
    )
    parts.append(f'<div class="prose">{render_markdown(exercise.instructions, code_lookup)}</div>')

    if exercise.environment:
        parts.append(
            f'<p class="exercise-environment"><strong>Environment:</strong> '
            f'{html.escape(exercise.environment)}</p>'
        )

    if exercise.success_criteria:
        parts.append('<div class="exercise-criteria-label">Success Criteria</div><ul>')
        for criterion in exercise.success_criteria:
            parts.append(f'<li>{html.escape(criterion)}</li>')
        parts.append('</ul>')

    if state is not None and exercise.hints:
        parts.append(render_hints(exercise.hints, state, code_lookup))

    parts.append('</div>')
    return ''.join(parts)


def render_review_questions(questions: list[ReviewQuestion]) -> str:
    """Render review questions as collapsible question/answer pairs."""
    if not questions:
        return ""

    parts = [f'<details><summary><strong>Review Questions ({len(questions)})</strong></summary>']
    for i, q in enumerate(questions):
        parts.append(
            f'<details class="review-question">'
            f'<summary>{i + 1}. {html.escape(q.question)}</summary>'
            f'<div class="review-answer">{html.escape(q.answer)}</div>'
            f'</details>'
        )
    parts.append('</details>')
    return ''.join(parts)


def exercise_markdown(lesson: LessonDetail) -> list[str]:
    """All Markdown texts of a lesson's exercises (instructions and hints)."""
    texts = []
    for exercise in lesson.exercises:
        texts.append(exercise.instructions)
        texts.extend(exercise.hints)
    return texts
