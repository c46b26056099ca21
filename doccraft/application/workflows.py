"""Application service layer for documentation workflows."""
from __future__ import annotations

import logging
import uuid

from doccraft.core.schema import DocSession
from doccraft.core.settings import Settings
from doccraft.infrastructure import (
    GenerativeService,
    HistoryStorage,
    HistoryStore,
    InMemoryHistoryStorage,
    get_generative_service,
)

from .workflow import DocumentWorkflow

logger = logging.getLogger(__name__)


class WorkflowService:
    """Keeps the live workflows of the process and the shared session history."""

    def __init__(
        self,
        storage: HistoryStorage,
        *,
        settings: Settings | None = None,
        service: GenerativeService | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._storage = storage
        self._history = HistoryStore(storage)
        self._service = service
        self._workflows: dict[str, DocumentWorkflow] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def history(self) -> HistoryStore:
        return self._history

    # ------------------------------------------------------------------
    # workflow lifecycle
    # ------------------------------------------------------------------
    def create_workflow(self) -> DocumentWorkflow:
        workflow_id = uuid.uuid4().hex[:12]
        workflow = DocumentWorkflow(
            workflow_id,
            service=self._service or get_generative_service(),
            history=self._history,
            settings=self._settings,
        )
        self._workflows[workflow_id] = workflow
        logger.info("created workflow %s", workflow_id)
        return workflow

    def get_workflow(self, workflow_id: str) -> DocumentWorkflow | None:
        return self._workflows.get(workflow_id)

    def list_workflows(self) -> list[dict[str, object]]:
        return [
            {
                "workflow_id": workflow.workflow_id,
                "stage": workflow.stage.value,
                "doc_type": workflow.state.config.doc_type,
            }
            for workflow in self._workflows.values()
        ]

    def discard_workflow(self, workflow_id: str) -> None:
        workflow = self._workflows.pop(workflow_id, None)
        if workflow is None:
            raise KeyError(workflow_id)

    # ------------------------------------------------------------------
    # session history
    # ------------------------------------------------------------------
    def list_sessions(self) -> list[DocSession]:
        return self._history.load_all()

    def remove_session(self, session_id: str) -> None:
        self._history.remove(session_id)

    def clear_sessions(self) -> None:
        self._history.clear()

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------
    def configure(
        self,
        *,
        settings: Settings | None = None,
        storage: HistoryStorage | None = None,
        service: GenerativeService | None = None,
    ) -> None:
        if settings is not None:
            self._settings = settings
        if storage is not None:
            self._storage = storage
            self._history = HistoryStore(storage)
        if service is not None:
            self._service = service

    def reset(self) -> None:
        self._workflows.clear()
        self._storage = InMemoryHistoryStorage()
        self._history = HistoryStore(self._storage)
        self._service = None
        self._settings = Settings()


_service = WorkflowService(InMemoryHistoryStorage())


def get_workflow_service() -> WorkflowService:
    """Return the singleton workflow service for the process."""

    return _service


def reset_workflow_state() -> None:
    """Reset the in-memory workflows and history (used in tests)."""

    _service.reset()
