"""Apollo utilities."""

from .loop import BackgroundLoop, bound_to_other_loop, get_background_loop

__all__ = [
    "BackgroundLoop",
    "bound_to_other_loop",
    "get_background_loop",
]
