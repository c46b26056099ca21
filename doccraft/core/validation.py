from __future__ import annotations

from doccraft.core.schema import REFINE_ACTIONS


class InputValidationError(ValueError):
    """Raised when user input is rejected before any external call."""


def validate_source_content(content: str | None) -> str:
    if not content or not content.strip():
        raise InputValidationError("Please upload or paste some content first.")
    return content


def validate_refine_action(action: str | None) -> str:
    if action not in REFINE_ACTIONS:
        raise InputValidationError(f"action must be one of: {', '.join(REFINE_ACTIONS)}")
    return action


def validate_selection(selected_text: str | None, document: str) -> str:
    if not selected_text or not selected_text.strip():
        raise InputValidationError("selected_text is required")
    if selected_text not in document:
        raise InputValidationError("selected_text does not occur in the current document")
    return selected_text


def validate_url(url: str | None) -> str:
    if not url or not url.strip():
        raise InputValidationError("URL is required")
    return url.strip()
