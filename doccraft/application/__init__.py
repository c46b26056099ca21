"""Application services."""

from .workflow import DocumentWorkflow
from .workflows import WorkflowService, get_workflow_service, reset_workflow_state

__all__ = [
    "DocumentWorkflow",
    "WorkflowService",
    "get_workflow_service",
    "reset_workflow_state",
]
