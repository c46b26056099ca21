"""Contract for the generative text and diagram service.

The workflow only talks to the service through :class:`GenerativeService`.
Until an implementation is installed with ``configure_generative_service``
every call fails with :class:`GenerativeServiceError`, which the workflow
reports like any other collaborator failure.
"""
from __future__ import annotations

from typing import Protocol

from doccraft.core.schema import (
    AnalysisRequest,
    AnalysisResponse,
    ComplianceIssue,
    ComplianceRequest,
    DiagramRequest,
    DiagramResponse,
    FormatRecommendation,
    RecommendationRequest,
    RefinementRequest,
    RefinementResponse,
    SynthesisRequest,
    SynthesisResponse,
)


class GenerativeServiceError(RuntimeError):
    """Raised when the generative service fails or returns an unusable response."""


class GenerativeService(Protocol):
    async def analyze(self, request: AnalysisRequest) -> AnalysisResponse:
        """Return clarification questions for the source material."""

    async def synthesize(self, request: SynthesisRequest) -> SynthesisResponse:
        """Write the document from the source material and the answers."""

    async def refine(self, request: RefinementRequest) -> RefinementResponse:
        """Rewrite a selected span of the document."""

    async def check_compliance(self, request: ComplianceRequest) -> list[ComplianceIssue]:
        """Return advisory voice, structure and style findings."""

    async def recommend_format(self, request: RecommendationRequest) -> FormatRecommendation:
        """Suggest the document type that best fits the content."""

    async def generate_diagram(self, request: DiagramRequest) -> DiagramResponse:
        """Return a Mermaid diagram describing the document."""


class UnconfiguredGenerativeService:
    """Fallback used when no provider credentials are configured."""

    message = "Generative service not configured. Set OPENAI_API_KEY."

    async def analyze(self, request: AnalysisRequest) -> AnalysisResponse:
        raise GenerativeServiceError(self.message)

    async def synthesize(self, request: SynthesisRequest) -> SynthesisResponse:
        raise GenerativeServiceError(self.message)

    async def refine(self, request: RefinementRequest) -> RefinementResponse:
        raise GenerativeServiceError(self.message)

    async def check_compliance(self, request: ComplianceRequest) -> list[ComplianceIssue]:
        raise GenerativeServiceError(self.message)

    async def recommend_format(self, request: RecommendationRequest) -> FormatRecommendation:
        raise GenerativeServiceError(self.message)

    async def generate_diagram(self, request: DiagramRequest) -> DiagramResponse:
        raise GenerativeServiceError(self.message)


_service: GenerativeService = UnconfiguredGenerativeService()


def configure_generative_service(service: GenerativeService) -> None:
    """Install the generative service used by new workflows."""

    global _service
    _service = service


def get_generative_service() -> GenerativeService:
    """Return the currently configured generative service."""

    return _service
