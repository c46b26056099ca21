"""Context document handling and glossary detection."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from doccraft.core.schema import GlossaryData
from doccraft.core.validation import InputValidationError

CONTEXT_SEPARATOR = "\n\n---\n\n"


@dataclass(slots=True)
class GlossaryDetection:
    is_glossary: bool
    data: GlossaryData | None = None


def _looks_like_glossary(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    return isinstance(payload.get("forbidden_terms"), list) or isinstance(payload.get("preferred_terms"), dict)


def detect_glossary(text: str) -> GlossaryDetection:
    """Check whether ``text`` is a JSON glossary.

    A glossary is a JSON object with a ``forbidden_terms`` list or a
    ``preferred_terms`` mapping that validates against :class:`GlossaryData`.
    """

    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return GlossaryDetection(is_glossary=False)
    if not _looks_like_glossary(payload):
        return GlossaryDetection(is_glossary=False)
    try:
        data = GlossaryData(**payload)
    except (ValidationError, TypeError):
        return GlossaryDetection(is_glossary=False)
    return GlossaryDetection(is_glossary=True, data=data)


def parse_glossary_payload(payload: dict[str, Any] | None) -> GlossaryData:
    """Validate an explicit glossary object supplied through the API."""

    if not payload:
        raise InputValidationError("glossary must not be empty")
    if not _looks_like_glossary(payload):
        raise InputValidationError("glossary needs a forbidden_terms list or a preferred_terms object")
    try:
        return GlossaryData(**payload)
    except ValidationError as exc:
        raise InputValidationError(f"invalid glossary: {exc.errors()[0]['msg']}") from exc


def combine_context(existing: str, addition: str) -> str:
    if not addition:
        return existing
    if not existing:
        return addition
    return f"{existing}{CONTEXT_SEPARATOR}{addition}"
