from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from doccraft.core.glossary import parse_glossary_payload
from doccraft.core.terminology import evaluate, to_compliance_issue

router = APIRouter(prefix="/terminology", tags=["terminology"])


@router.post("")
async def check_terminology(payload: dict[str, Any]) -> dict:
    """Stateless rule-engine check; no generative calls are made."""
    document = payload.get("document")
    if not isinstance(document, str) or not document.strip():
        raise HTTPException(status_code=400, detail="document is required")
    glossary_payload = payload.get("glossary")
    glossary = parse_glossary_payload(glossary_payload) if glossary_payload else None

    issues = evaluate(document, glossary)
    return {
        "issues": [issue.model_dump() for issue in issues],
        "compliance_issues": [to_compliance_issue(issue, index).model_dump() for index, issue in enumerate(issues)],
    }
