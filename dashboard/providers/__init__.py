"""Backend data providers package."""

from .backend import BackendProvider

__all__ = ["BackendProvider"]
