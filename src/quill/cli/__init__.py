"""Terminal front end for Quill."""

from .app import app

__all__ = ["app"]
