"""
Syntax highlighting for code sections.

One Pygments-backed engine per process, loaded with a fixed language set and
theme. Languages outside the set are highlighted as plain text. Pygments
escapes all source text, so the markup is safe to inject.
"""

import asyncio
import logging
from typing import Optional

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer

from .render_cache import AsyncRenderCache, RenderOutcome

logger = logging.getLogger(__name__)


THEME = "github-dark"

BUNDLED_LANGUAGES = (
    "bash",
    "json",
    "yaml",
    "go",
    "javascript",
    "typescript",
)

PLAIN_LANGUAGE = "text"

HIGHLIGHT_CSS_CLASS = "highlight"


class HighlightEngine:
    """Pygments formatter plus the preloaded lexers for BUNDLED_LANGUAGES."""

    def __init__(self, theme: str = THEME, languages: tuple[str, ...] = BUNDLED_LANGUAGES):
        self.theme = theme
        self._formatter = HtmlFormatter(style=theme, cssclass=HIGHLIGHT_CSS_CLASS, wrapcode=True)
        self._lexers = {lang: get_lexer_by_name(lang, stripnl=False) for lang in languages}
        self._plain = TextLexer(stripnl=False)

    def loaded_languages(self) -> list[str]:
        return list(self._lexers)

    def resolve_language(self, language: str) -> str:
        """Return `language` if loaded, else the plain-text lane."""
        lang = language.strip().lower()
        return lang if lang in self._lexers else PLAIN_LANGUAGE

    def highlight(self, code: str, language: str) -> str:
        lexer = self._lexers.get(self.resolve_language(language), self._plain)
        return pygments_highlight(code, lexer, self._formatter)

    def style_defs(self) -> str:
        return self._formatter.get_style_defs(f".{HIGHLIGHT_CSS_CLASS}")


async def create_highlight_engine() -> HighlightEngine:
    # Lexer and style loading is blocking work
    return await asyncio.to_thread(HighlightEngine)


class SyntaxHighlightRenderer:
    """Highlights (code, language) pairs through a shared AsyncRenderCache."""

    def __init__(self, cache: Optional[AsyncRenderCache[HighlightEngine]] = None):
        self.cache = cache or AsyncRenderCache("highlight", create_highlight_engine)

    @staticmethod
    def cache_key(code: str, language: str) -> tuple[str, str, str]:
        return ("code", code, language)

    async def highlight(self, code: str, language: str) -> RenderOutcome:
        """Return highlighted HTML for `code`; markup is None if highlighting failed."""
        async def produce(engine: HighlightEngine) -> str:
            return await asyncio.to_thread(engine.highlight, code, language)

        return await self.cache.render(self.cache_key(code, language), produce)

    def peek(self, code: str, language: str) -> Optional[RenderOutcome]:
        return self.cache.peek(self.cache_key(code, language))


_highlighter: Optional[SyntaxHighlightRenderer] = None


def get_highlighter() -> SyntaxHighlightRenderer:
    """Process-wide highlighter."""
    global _highlighter
    if _highlighter is None:
        _highlighter = SyntaxHighlightRenderer()
    return _highlighter
