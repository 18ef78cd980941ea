"""
Section renderer - HTML for lesson content sections.

Features:
- Exhaustive dispatch over the six section types, with a visible
  placeholder for unknown or invalid sections
- Escaping-by-default Markdown for author prose (raw HTML disabled)
- Highlighted code and laid-out diagrams taken from the shared render caches;
  only that engine output is injected unescaped
"""

import asyncio
import html
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional, Union, assert_never
from urllib.parse import urlsplit

from markdown_it import MarkdownIt
from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from apollo.schemas import (
    CalloutSection,
    CodeSection,
    ContentSection,
    DiagramSection,
    ImageSection,
    TableSection,
    TextSection,
    UnknownSection,
    parse_section,
)

from .diagram import DiagramRenderer, get_diagram_renderer
from .highlight import HIGHLIGHT_CSS_CLASS, THEME, SyntaxHighlightRenderer, get_highlighter

logger = logging.getLogger(__name__)


CALLOUT_LABELS = {
    "prerequisite": "Prerequisite",
    "warning": "Warning",
    "tip": "Tip",
    "info": "Info",
}

SAFE_URL_SCHEMES = ("http", "https")

CodeLookup = Callable[[str, str], Optional[str]]


@dataclass(frozen=True)
class SectionView:
    """Rendered form of one content section."""
    section_type: str
    html: str
    is_placeholder: bool = False
    is_loading: bool = False


def get_content_css() -> str:
    """Get CSS styles for lesson content display."""
    return _CONTENT_CSS + f"<style>{_highlight_style_defs()}</style>"


@lru_cache(maxsize=1)
def _highlight_style_defs() -> str:
    try:
        return HtmlFormatter(style=THEME).get_style_defs(f".{HIGHLIGHT_CSS_CLASS}")
    except ClassNotFound:
        logger.warning(f"Highlight style not available: {THEME}")
        return ""


_CONTENT_CSS = """
<style>
.lesson-section {
    margin: 1.5em 0;
}
.prose p {
    line-height: 1.7;
}
.code-header {
    display: flex;
    justify-content: space-between;
    align-items: center;
    background: #1f2937;
    border-radius: 8px 8px 0 0;
    padding: 0.5em 1em;
}
.code-title {
    color: #e5e7eb;
    font-weight: 500;
    font-size: 0.9em;
}
.code-language {
    background: #374151;
    color: #9ca3af;
    border-radius: 4px;
    padding: 0.1em 0.5em;
    font-size: 0.75em;
}
.code-body .highlight pre, .code-plain {
    margin: 0;
    padding: 1em;
    overflow-x: auto;
    border-radius: 0 0 8px 8px;
    font-size: 0.9em;
}
.code-plain {
    background: #111827;
    color: #d1d5db;
}
.code-explanation {
    color: #4b5563;
    font-size: 0.9em;
    margin-top: 0.5em;
}
.callout {
    border-left: 4px solid;
    border-radius: 8px;
    padding: 1em;
}
.callout-label {
    font-weight: 600;
    font-size: 0.9em;
}
.callout-info { background: #eff6ff; border-color: #93c5fd; }
.callout-tip { background: #f0fdf4; border-color: #86efac; }
.callout-warning { background: #fffbeb; border-color: #fcd34d; }
.callout-prerequisite { background: #faf5ff; border-color: #d8b4fe; }
.callout-concept {
    font-size: 0.85em;
    color: #6b7280;
    margin-top: 0.5em;
}
.content-table {
    border-collapse: collapse;
    width: 100%;
    font-size: 0.9em;
}
.content-table th {
    background: #f9fafb;
    text-align: left;
    padding: 0.5em 1em;
    border: 1px solid #e5e7eb;
}
.content-table td {
    padding: 0.5em 1em;
    border: 1px solid #e5e7eb;
    color: #4b5563;
}
.content-table tr.row-odd {
    background: #f9fafb;
}
.diagram-svg {
    display: flex;
    justify-content: center;
    overflow-x: auto;
}
.diagram-svg svg {
    max-width: 100%;
}
.diagram-loading {
    background: #f9fafb;
    color: #9ca3af;
    text-align: center;
    padding: 2em;
    border-radius: 8px;
}
.diagram-error {
    background: #fef2f2;
    border: 1px solid #fecaca;
    border-radius: 8px;
    padding: 1em;
}
.diagram-error-title {
    color: #b91c1c;
    font-weight: 500;
}
.diagram-error pre {
    font-size: 0.8em;
    overflow-x: auto;
}
figure img {
    max-width: 100%;
    border-radius: 8px;
}
figcaption {
    color: #6b7280;
    font-size: 0.9em;
    text-align: center;
    margin-top: 0.5em;
}
.section-unknown {
    border: 1px dashed #d1d5db;
    background: #f9fafb;
    color: #6b7280;
    border-radius: 6px;
    padding: 1em;
    font-size: 0.9em;
}
</style>
"""


# -----------------------------------------------------------------------------
# Markdown
# -----------------------------------------------------------------------------

def _render_fence(self, tokens, idx, options, env) -> str:
    token = tokens[idx]
    info = token.info.strip()
    language = info.split(maxsplit=1)[0] if info else ""
    code = token.content.rstrip("\n")
    lookup = env.get("code_lookup") if isinstance(env, dict) else None
    highlighted = lookup(code, language) if lookup and language else None
    return render_code_body(code, highlighted)


def _create_markdown() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"html": False}).enable("table")
    md.add_render_rule("fence", _render_fence)
    return md


_markdown = _create_markdown()


def render_markdown(text: str, code_lookup: Optional[CodeLookup] = None) -> str:
    """
    Render author Markdown with raw HTML escaped.

    Args:
        text: Markdown source
        code_lookup: Optional (code, language) -> highlighted HTML for fenced
            blocks; blocks without a result render as plain escaped code
    """
    return _markdown.render(text, {"code_lookup": code_lookup})


def fenced_code_blocks(text: str) -> list[tuple[str, str]]:
    """List (code, language) for each fenced block that names a language."""
    blocks = []
    for token in _markdown.parse(text):
        if token.type != "fence":
            continue
        info = token.info.strip()
        if info:
            blocks.append((token.content.rstrip("\n"), info.split(maxsplit=1)[0]))
    return blocks


# -----------------------------------------------------------------------------
# Building blocks
# -----------------------------------------------------------------------------

def safe_url(url: str) -> str:
    """
    Return `url` unless it names a scheme other than http(s) or an inline
    image. Relative paths pass through unchanged.
    """
    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return ""
    scheme = parts.scheme.lower()
    if not scheme or scheme in SAFE_URL_SCHEMES:
        return candidate
    if scheme == "data" and parts.path.lower().startswith("image/"):
        return candidate
    return ""


def render_code_body(code: str, highlighted: Optional[str]) -> str:
    """Highlighted markup if available, else the escaped plain block."""
    if highlighted:
        return f'<div class="code-body">{highlighted}</div>'
    return f'<pre class="code-plain"><code>{html.escape(code)}</code></pre>'


def _plain_lines(text: str) -> str:
    return html.escape(text).replace("\n", "<br>")


def render_text(section: TextSection, code_lookup: Optional[CodeLookup] = None) -> str:
    return f'<div class="lesson-section prose">{render_markdown(section.body, code_lookup)}</div>'


def render_code(section: CodeSection, highlighted: Optional[str]) -> str:
    """Render a code section; `highlighted` is trusted engine output or None."""
    header = []
    if section.title:
        header.append(f'<span class="code-title">{html.escape(section.title)}</span>')
    header.append(f'<span class="code-language">{html.escape(section.language)}</span>')

    parts = ['<div class="lesson-section code-section">']
    parts.append(f'<div class="code-header">{"".join(header)}</div>')
    parts.append(render_code_body(section.code, highlighted))
    if section.explanation:
        parts.append(f'<p class="code-explanation">{_plain_lines(section.explanation)}</p>')
    parts.append('</div>')
    return ''.join(parts)


def render_callout(section: CalloutSection) -> str:
    label = CALLOUT_LABELS.get(section.variant, section.variant)
    parts = [f'<div class="lesson-section callout callout-{section.variant}">']
    parts.append(f'<div class="callout-label">{html.escape(label)}</div>')
    parts.append(f'<div class="callout-body">{_plain_lines(section.body)}</div>')
    if section.concept_ref:
        parts.append(
            f'<div class="callout-concept">Related concept: '
            f'<code>{html.escape(section.concept_ref)}</code></div>'
        )
    parts.append('</div>')
    return ''.join(parts)


def render_table(section: TableSection) -> str:
    """Render headers and rows in the given order."""
    head = ''.join(f'<th>{html.escape(h)}</th>' for h in section.headers)
    body = []
    for i, row in enumerate(section.rows):
        cells = ''.join(f'<td>{html.escape(cell)}</td>' for cell in row)
        row_class = "row-even" if i % 2 == 0 else "row-odd"
        body.append(f'<tr class="{row_class}">{cells}</tr>')
    return (
        f'<div class="lesson-section table-section">'
        f'<table class="content-table"><thead><tr>{head}</tr></thead>'
        f'<tbody>{"".join(body)}</tbody></table></div>'
    )


def render_image(section: ImageSection) -> str:
    caption = f'<figcaption>{html.escape(section.caption)}</figcaption>' if section.caption else ''
    return (
        f'<figure class="lesson-section">'
        f'<img src="{html.escape(safe_url(section.url))}" alt="{html.escape(section.alt)}" loading="lazy">'
        f'{caption}</figure>'
    )


def render_diagram_image(section: DiagramSection) -> str:
    alt = section.title or "Diagram"
    return (
        f'<img src="{html.escape(safe_url(section.source))}" '
        f'alt="{html.escape(alt)}" loading="lazy">'
    )


def render_diagram_error(source: str, error: str) -> str:
    """Error panel with the engine message and the raw source for debugging."""
    return (
        f'<div class="diagram-error">'
        f'<div class="diagram-error-title">Diagram render error</div>'
        f'<pre>{html.escape(error)}</pre>'
        f'<details><summary>Show raw source</summary>'
        f'<pre>{html.escape(source)}</pre></details>'
        f'</div>'
    )


def render_diagram(section: DiagramSection, body: str) -> str:
    title = f'<figcaption>{html.escape(section.title)}</figcaption>' if section.title else ''
    return f'<figure class="lesson-section diagram-section">{title}{body}</figure>'


def render_unknown(section: UnknownSection) -> str:
    if section.reason:
        message = f"Could not display {section.type} section"
    else:
        message = f"Unsupported content section: {section.type}"
    return f'<div class="lesson-section section-unknown">{html.escape(message)}</div>'


# -----------------------------------------------------------------------------
# Dispatch
# -----------------------------------------------------------------------------

class SectionRenderer:
    """
    Maps content sections to SectionViews.

    `render` awaits the highlight/diagram engines; `render_cached` never
    waits and shows whatever the caches already hold, falling back to plain
    code or a loading panel.
    """

    def __init__(
        self,
        highlighter: Optional[SyntaxHighlightRenderer] = None,
        diagrams: Optional[DiagramRenderer] = None,
    ):
        self.highlighter = highlighter or get_highlighter()
        self.diagrams = diagrams or get_diagram_renderer()

    def _coerce(self, section: Union[ContentSection, dict[str, Any]]) -> ContentSection:
        return parse_section(section) if isinstance(section, dict) else section

    def code_lookup(self, code: str, language: str) -> Optional[str]:
        """Highlighted markup for a fenced code block, if already rendered."""
        outcome = self.highlighter.peek(code, language)
        return outcome.markup if outcome else None

    async def prepare(self, section: Union[ContentSection, dict[str, Any]]):
        """Run the engines a section needs so render_cached finds the output."""
        section = self._coerce(section)
        if isinstance(section, CodeSection):
            await self.highlighter.highlight(section.code, section.language)
        elif isinstance(section, DiagramSection) and section.format == "graph":
            await self.diagrams.render(section.source)
        elif isinstance(section, TextSection):
            await self.prepare_markdown(section.body)

    async def prepare_markdown(self, text: str):
        """Highlight the fenced code blocks of a Markdown text."""
        blocks = fenced_code_blocks(text)
        if blocks:
            await asyncio.gather(*(self.highlighter.highlight(code, lang) for code, lang in blocks))

    async def render(self, section: Union[ContentSection, dict[str, Any]]) -> SectionView:
        await self.prepare(section)
        return self.render_cached(section)

    async def render_all(self, sections: list) -> list[SectionView]:
        """Render sections concurrently, preserving their order."""
        await asyncio.gather(*(self.prepare(s) for s in sections))
        return [self.render_cached(s) for s in sections]

    def render_cached(self, section: Union[ContentSection, dict[str, Any]]) -> SectionView:
        section = self._coerce(section)

        if isinstance(section, TextSection):
            return SectionView("text", render_text(section, self.code_lookup))

        elif isinstance(section, CodeSection):
            outcome = self.highlighter.peek(section.code, section.language)
            highlighted = outcome.markup if outcome else None
            return SectionView("code", render_code(section, highlighted), is_loading=outcome is None)

        elif isinstance(section, CalloutSection):
            return SectionView("callout", render_callout(section))

        elif isinstance(section, DiagramSection):
            return self._render_diagram(section)

        elif isinstance(section, TableSection):
            return SectionView("table", render_table(section))

        elif isinstance(section, ImageSection):
            return SectionView("image", render_image(section))

        elif isinstance(section, UnknownSection):
            return SectionView(section.type, render_unknown(section), is_placeholder=True)

        assert_never(section)

    def _render_diagram(self, section: DiagramSection) -> SectionView:
        if section.format == "image":
            return SectionView("diagram", render_diagram(section, render_diagram_image(section)))
        if section.format == "mermaid":
            body = render_diagram_error(section.source, "Mermaid diagrams are not supported by this viewer")
            return SectionView("diagram", render_diagram(section, body))

        outcome = self.diagrams.peek(section.source)
        if outcome is None:
            body = '<div class="diagram-loading">Loading diagram…</div>'
            return SectionView("diagram", render_diagram(section, body), is_loading=True)
        if outcome.ok:
            body = f'<div class="diagram-svg">{outcome.markup}</div>'
        else:
            body = render_diagram_error(section.source, outcome.error or "Failed to render diagram")
        return SectionView("diagram", render_diagram(section, body))
