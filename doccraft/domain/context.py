"""Domain entities for workflow context material."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class LoadedFile:
    """A context document attached to a workflow run."""

    name: str
    chars: int = 0
    is_glossary: bool = False
    source: str = "upload"

    def as_dict(self) -> dict[str, object]:
        return {"name": self.name, "chars": self.chars, "is_glossary": self.is_glossary, "source": self.source}
