from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from fastapi import APIRouter, File, HTTPException, UploadFile

from doccraft.application import get_workflow_service
from doccraft.core.validation import validate_url
from doccraft.infrastructure import GitHubFetchError, get_github_fetcher

router = APIRouter(prefix="/workflows", tags=["context"])


@router.post("/{workflow_id}/context/files")
async def upload_context_files(workflow_id: str, files: list[UploadFile] = File(...)) -> dict:
    """Attach reference documents; a JSON glossary becomes the active glossary."""
    workflow = get_workflow_service().get_workflow(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail="workflow not found")
    if not files:
        raise HTTPException(status_code=400, detail="At least one file must be provided")
    workflow.require_upload("AddContext")

    loaded: list[dict[str, Any]] = []
    skipped: list[str] = []
    for upload in files:
        try:
            if not upload.filename:
                raise HTTPException(status_code=400, detail="Uploaded file must have a filename")
            safe_name = Path(upload.filename).name
            raw = await upload.read()
            item = await workflow.add_context_file(safe_name, raw.decode("utf-8", errors="replace"))
            if item is None:
                skipped.append(safe_name)
            else:
                loaded.append(item.as_dict())
        finally:
            await upload.close()

    return {"items": loaded, "skipped": skipped, "workflow": workflow.snapshot()}


@router.post("/{workflow_id}/context/github")
async def fetch_github_context(workflow_id: str, payload: dict[str, Any]) -> dict:
    workflow = get_workflow_service().get_workflow(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail="workflow not found")
    url = validate_url(payload.get("url"))
    workflow.require_upload("AddContext")

    fetcher = get_github_fetcher()
    try:
        fetched = await asyncio.to_thread(fetcher.fetch, url)
    except GitHubFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    item = await workflow.add_fetched_context(fetched)
    return {"item": item.as_dict(), "workflow": workflow.snapshot()}
