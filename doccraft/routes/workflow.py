from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from doccraft.application import DocumentWorkflow, get_workflow_service
from doccraft.core.glossary import parse_glossary_payload
from doccraft.core.issues import IssueBoard
from doccraft.core.schema import DocConfig

router = APIRouter(prefix="/workflows", tags=["workflow"])


def _get_workflow(workflow_id: str) -> DocumentWorkflow:
    workflow = get_workflow_service().get_workflow(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail="workflow not found")
    return workflow


def _get_issue_board(workflow: DocumentWorkflow) -> IssueBoard:
    if workflow.issues is None:
        raise HTTPException(status_code=404, detail="no compliance check has been run")
    return workflow.issues


@router.get("")
async def list_workflows() -> dict:
    service = get_workflow_service()
    return {"items": service.list_workflows()}


@router.post("")
async def create_workflow() -> dict:
    workflow = get_workflow_service().create_workflow()
    return workflow.snapshot()


@router.get("/{workflow_id}")
async def get_workflow(workflow_id: str) -> dict:
    return _get_workflow(workflow_id).snapshot()


@router.delete("/{workflow_id}")
async def discard_workflow(workflow_id: str) -> dict:
    try:
        get_workflow_service().discard_workflow(workflow_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="workflow not found") from exc
    return {"workflow_id": workflow_id, "discarded": True}


# ----------------------------------------------------------------------
# upload stage
# ----------------------------------------------------------------------
@router.put("/{workflow_id}/content")
async def set_content(workflow_id: str, payload: dict[str, Any]) -> dict:
    workflow = _get_workflow(workflow_id)
    content = payload.get("content")
    if not isinstance(content, str):
        raise HTTPException(status_code=400, detail="content is required")
    file_names = payload.get("file_names") or []
    if not isinstance(file_names, list):
        raise HTTPException(status_code=400, detail="file_names must be a list")
    await workflow.set_content(content, [str(name) for name in file_names])
    return workflow.snapshot()


@router.put("/{workflow_id}/config")
async def set_config(workflow_id: str, payload: dict[str, Any]) -> dict:
    workflow = _get_workflow(workflow_id)
    try:
        config = DocConfig(**{**workflow.state.config.model_dump(), **payload})
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors()[0]["msg"]) from exc
    await workflow.configure(config)
    return workflow.snapshot()


@router.put("/{workflow_id}/context")
async def set_context(workflow_id: str, payload: dict[str, Any]) -> dict:
    workflow = _get_workflow(workflow_id)
    context_text = payload.get("context_text") or ""
    if not isinstance(context_text, str):
        raise HTTPException(status_code=400, detail="context_text must be a string")
    glossary_payload = payload.get("glossary")
    glossary = parse_glossary_payload(glossary_payload) if glossary_payload is not None else None
    if not context_text and glossary is None:
        await workflow.clear_context()
    else:
        await workflow.set_context(context_text, glossary)
    return workflow.snapshot()


@router.post("/{workflow_id}/recommendation/accept")
async def accept_recommendation(workflow_id: str) -> dict:
    workflow = _get_workflow(workflow_id)
    await workflow.accept_recommendation()
    return workflow.snapshot()


@router.post("/{workflow_id}/analyze")
async def start_analysis(workflow_id: str) -> dict:
    """Run gap analysis; the response carries the questions or the failure message."""
    workflow = _get_workflow(workflow_id)
    await workflow.start_analysis()
    return workflow.snapshot()


# ----------------------------------------------------------------------
# questions stage
# ----------------------------------------------------------------------
@router.put("/{workflow_id}/questions/{question_id}/answer")
async def answer_question(workflow_id: str, question_id: str, payload: dict[str, Any]) -> dict:
    workflow = _get_workflow(workflow_id)
    answer = payload.get("answer")
    if not isinstance(answer, str):
        raise HTTPException(status_code=400, detail="answer is required")
    try:
        await workflow.answer(question_id, answer)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="question not found") from exc
    return workflow.snapshot()


@router.post("/{workflow_id}/questions/{question_id}/skip")
async def toggle_skip(workflow_id: str, question_id: str) -> dict:
    workflow = _get_workflow(workflow_id)
    try:
        await workflow.toggle_skip(question_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="question not found") from exc
    return workflow.snapshot()


@router.post("/{workflow_id}/generate")
async def generate_document(workflow_id: str) -> dict:
    workflow = _get_workflow(workflow_id)
    await workflow.submit_answers()
    return workflow.snapshot()


# ----------------------------------------------------------------------
# editing stage
# ----------------------------------------------------------------------
@router.put("/{workflow_id}/document")
async def edit_document(workflow_id: str, payload: dict[str, Any]) -> dict:
    workflow = _get_workflow(workflow_id)
    document = payload.get("document")
    if not isinstance(document, str):
        raise HTTPException(status_code=400, detail="document is required")
    await workflow.edit_document(document)
    return workflow.snapshot()


@router.post("/{workflow_id}/refine")
async def refine_selection(workflow_id: str, payload: dict[str, Any]) -> dict:
    workflow = _get_workflow(workflow_id)
    await workflow.refine(str(payload.get("selected_text") or ""), str(payload.get("action") or ""))
    return workflow.snapshot()


@router.post("/{workflow_id}/diagram")
async def generate_diagram(workflow_id: str, payload: dict[str, Any] | None = None) -> dict:
    workflow = _get_workflow(workflow_id)
    diagram_type = (payload or {}).get("diagram_type")
    response = await workflow.generate_diagram(str(diagram_type) if diagram_type else None)
    return response.model_dump()


@router.post("/{workflow_id}/compliance")
async def run_compliance(workflow_id: str) -> dict:
    workflow = _get_workflow(workflow_id)
    board = await workflow.check_compliance()
    return board.snapshot()


@router.get("/{workflow_id}/compliance")
async def get_compliance(workflow_id: str) -> dict:
    board = _get_issue_board(_get_workflow(workflow_id))
    return board.snapshot()


@router.post("/{workflow_id}/compliance/dismiss-all")
async def dismiss_all_issues(workflow_id: str) -> dict:
    board = _get_issue_board(_get_workflow(workflow_id))
    board.dismiss_all()
    return board.snapshot()


def _update_issue(workflow_id: str, issue_id: str, operation: str) -> dict:
    board = _get_issue_board(_get_workflow(workflow_id))
    try:
        getattr(board, operation)(issue_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="issue not found") from exc
    return board.snapshot()


@router.post("/{workflow_id}/compliance/{issue_id}/dismiss")
async def dismiss_issue(workflow_id: str, issue_id: str) -> dict:
    return _update_issue(workflow_id, issue_id, "dismiss")


@router.post("/{workflow_id}/compliance/{issue_id}/expand")
async def expand_issue(workflow_id: str, issue_id: str) -> dict:
    return _update_issue(workflow_id, issue_id, "expand")


@router.post("/{workflow_id}/compliance/{issue_id}/collapse")
async def collapse_issue(workflow_id: str, issue_id: str) -> dict:
    return _update_issue(workflow_id, issue_id, "collapse")


# ----------------------------------------------------------------------
# run lifecycle
# ----------------------------------------------------------------------
@router.post("/{workflow_id}/reset")
async def reset_workflow(workflow_id: str) -> dict:
    workflow = _get_workflow(workflow_id)
    await workflow.reset()
    return workflow.snapshot()


@router.post("/{workflow_id}/restore")
async def restore_session(workflow_id: str, payload: dict[str, Any]) -> dict:
    workflow = _get_workflow(workflow_id)
    session_id = payload.get("session_id")
    if not session_id:
        raise HTTPException(status_code=400, detail="session_id is required")
    try:
        await workflow.restore(str(session_id))
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="session not found") from exc
    return workflow.snapshot()
