"""
Apollo Viewer - Rendering components for lesson display.

This module provides:
- Content section rendering with a placeholder for unknown sections
- Shared, single-flight caches around the highlight and diagram engines
- Exercise, hint and review question display
"""

from .render_cache import (
    AsyncRenderCache,
    RenderOutcome,
    RenderSlot,
    CacheStats,
)

from .highlight import (
    HighlightEngine,
    SyntaxHighlightRenderer,
    get_highlighter,
    BUNDLED_LANGUAGES,
    PLAIN_LANGUAGE,
    THEME,
)

from .diagram import (
    DiagramEngine,
    DiagramRenderer,
    get_diagram_renderer,
    check_strict,
    sanitize_svg,
)

from .sections import (
    SectionRenderer,
    SectionView,
    get_content_css,
    render_markdown,
    fenced_code_blocks,
)

from .exercise import (
    get_exercise_css,
    hint_button_label,
    render_exercise,
    render_review_questions,
    exercise_markdown,
)

__all__ = [
    # Render cache
    "AsyncRenderCache",
    "RenderOutcome",
    "RenderSlot",
    "CacheStats",
    # Highlighting
    "HighlightEngine",
    "SyntaxHighlightRenderer",
    "get_highlighter",
    "BUNDLED_LANGUAGES",
    "PLAIN_LANGUAGE",
    "THEME",
    # Diagrams
    "DiagramEngine",
    "DiagramRenderer",
    "get_diagram_renderer",
    "check_strict",
    "sanitize_svg",
    # Sections
    "SectionRenderer",
    "SectionView",
    "get_content_css",
    "render_markdown",
    "fenced_code_blocks",
    # Exercises
    "get_exercise_css",
    "hint_button_label",
    "render_exercise",
    "render_review_questions",
    "exercise_markdown",
]
