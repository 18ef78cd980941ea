"""
Diagram rendering for graph diagram sections.

Graph sources are Graphviz DOT text laid out to SVG by one process-wide
engine. The engine runs in strict mode:
- link attributes (URL, href, target and their edge/head/tail/label forms)
  are rejected before layout
- anchors, scripts and event-handler attributes are stripped from the SVG
A fixed dark theme is injected as default graph/node/edge attributes.
"""

import asyncio
import logging
import re
from typing import Optional

import graphviz

from apollo.errors import DiagramRenderError, DiagramSecurityError

from .render_cache import AsyncRenderCache, RenderOutcome

logger = logging.getLogger(__name__)


LAYOUT_ENGINE = "dot"

THEME_ATTRIBUTES = {
    "graph": {
        "bgcolor": "transparent",
        "fontname": "Helvetica",
        "fontcolor": "#e5e7eb",
        "pad": "0.2",
    },
    "node": {
        "shape": "box",
        "style": "rounded,filled",
        "fillcolor": "#1f2937",
        "color": "#6b7280",
        "fontcolor": "#e5e7eb",
        "fontname": "Helvetica",
    },
    "edge": {
        "color": "#9ca3af",
        "fontcolor": "#d1d5db",
        "fontname": "Helvetica",
    },
}

FORBIDDEN_ATTRIBUTES = (
    "URL", "href", "target",
    "edgeURL", "edgehref", "edgetarget",
    "headURL", "headhref", "headtarget",
    "tailURL", "tailhref", "tailtarget",
    "labelURL", "labelhref", "labeltarget",
)

_QUOTED = re.compile(r'"(?:\\.|[^"\\])*"')
_FORBIDDEN = re.compile(r"\b(" + "|".join(FORBIDDEN_ATTRIBUTES) + r")\s*=")

_SVG_START = re.compile(r"<svg\b")
_ANCHOR_TAG = re.compile(r"</?a\b[^>]*>")
_SCRIPT = re.compile(r"<script\b.*?</script\s*>", re.DOTALL | re.IGNORECASE)
_EVENT_ATTR = re.compile(r'\s+on[a-zA-Z]+\s*=\s*("[^"]*"|\'[^\']*\')')
_HREF_ATTR = re.compile(r'\s+(?:xlink:)?href\s*=\s*("[^"]*"|\'[^\']*\')')


def check_strict(source: str):
    """
    Reject sources that would produce clickable output.

    Quoted strings are ignored, so labels may mention these words.

    Raises:
        DiagramSecurityError: If a link attribute is present
    """
    unquoted = _QUOTED.sub('""', source)
    match = _FORBIDDEN.search(unquoted)
    if match:
        raise DiagramSecurityError(
            f"attribute '{match.group(1)}' is not allowed in diagrams", source
        )


def theme_statements(theme: dict[str, dict[str, str]] = THEME_ATTRIBUTES) -> str:
    parts = []
    for kind, attrs in theme.items():
        body = ", ".join(f'{name}="{value}"' for name, value in attrs.items())
        parts.append(f"{kind} [{body}];")
    return " ".join(parts)


def apply_theme(source: str, statements: str) -> str:
    """Insert default attribute statements right after the opening brace."""
    brace = source.find("{")
    if brace == -1:
        return source
    return f"{source[:brace + 1]} {statements}{source[brace + 1:]}"


def sanitize_svg(svg: str) -> str:
    """Drop the XML prolog, anchors, scripts and event handlers."""
    start = _SVG_START.search(svg)
    if start:
        svg = svg[start.start():]
    svg = _SCRIPT.sub("", svg)
    svg = _ANCHOR_TAG.sub("", svg)
    svg = _EVENT_ATTR.sub("", svg)
    svg = _HREF_ATTR.sub("", svg)
    return svg.strip()


class DiagramEngine:
    """Graphviz layout in strict mode with a fixed theme."""

    def __init__(self, layout: str = LAYOUT_ENGINE, theme: Optional[dict] = None):
        self.layout = layout
        # Fails fast with ExecutableNotFound if Graphviz is not installed
        self.version = graphviz.version()
        self._theme = theme_statements(theme or THEME_ATTRIBUTES)

    def render(self, source: str) -> str:
        """
        Lay out `source` and return sanitized SVG.

        Raises:
            DiagramSecurityError: If the source uses link attributes
            DiagramRenderError: If Graphviz rejects the source
        """
        check_strict(source)
        data = apply_theme(source, self._theme).encode("utf-8")
        try:
            svg = graphviz.pipe(self.layout, "svg", data, quiet=True)
        except graphviz.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
            message = stderr.strip() or "Failed to render diagram"
            raise DiagramRenderError(message, source) from e
        return sanitize_svg(svg.decode("utf-8"))


async def create_diagram_engine() -> DiagramEngine:
    return await asyncio.to_thread(DiagramEngine)


class DiagramRenderer:
    """Renders graph sources to SVG through a shared AsyncRenderCache."""

    def __init__(self, cache: Optional[AsyncRenderCache[DiagramEngine]] = None):
        self.cache = cache or AsyncRenderCache("diagram", create_diagram_engine)

    @staticmethod
    def cache_key(source: str) -> tuple[str, str]:
        return ("diagram", source)

    async def render(self, source: str) -> RenderOutcome:
        """Return SVG for `source`; on failure markup is None and error is set."""
        async def produce(engine: DiagramEngine) -> str:
            return await asyncio.to_thread(engine.render, source)

        return await self.cache.render(self.cache_key(source), produce)

    def peek(self, source: str) -> Optional[RenderOutcome]:
        return self.cache.peek(self.cache_key(source))


_diagrams: Optional[DiagramRenderer] = None


def get_diagram_renderer() -> DiagramRenderer:
    """Process-wide diagram renderer."""
    global _diagrams
    if _diagrams is None:
        _diagrams = DiagramRenderer()
    return _diagrams
