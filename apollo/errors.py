"""Exception hierarchy shared by the viewer and the classroom layer."""

from typing import Optional


class ApolloError(Exception):
    """Base class for all Apollo errors."""


class ApiError(ApolloError):
    """Non-2xx response from the course API."""

    def __init__(self, status: int, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.url = url

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    def __str__(self) -> str:
        return f"HTTP {self.status}: {self.message}"


class RenderEngineError(ApolloError):
    """A rendering engine failed to initialize or to produce output."""


class DiagramRenderError(RenderEngineError):
    """Diagram source could not be laid out."""

    def __init__(self, message: str, source: str):
        super().__init__(message)
        self.source = source


class DiagramSecurityError(DiagramRenderError):
    """Diagram source uses attributes forbidden in strict mode."""
