"""Domain layer definitions."""

from .context import LoadedFile

__all__ = [
    "LoadedFile",
]
