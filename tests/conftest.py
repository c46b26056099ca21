from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from doccraft.core.schema import (
    AnalysisResponse,
    ComplianceIssue,
    DiagramResponse,
    FormatRecommendation,
    GapQuestion,
    RefinementResponse,
    SynthesisResponse,
)
from doccraft.core.settings import Settings


class FakeGenerativeService:
    """In-process stand-in for the generative service.

    ``delays`` and ``failures`` are keyed by method name.
    """

    def __init__(self) -> None:
        self.questions = [
            GapQuestion(id="q1", question="Who installs the agent?", category="missing"),
            GapQuestion(id="q2", question="Which operating systems are supported?", category="ambiguous"),
        ]
        self.document = "# Setup guide\n\nOpen the portal. Please utilize the dashboard to add a device."
        self.recommendation = FormatRecommendation(type="quick-start", reason="Short setup steps", confidence=0.9)
        self.advisory = [
            ComplianceIssue(
                id="ai-0",
                category="voice",
                severity="warning",
                rule="Use active voice",
                problematic_text="was configured",
                suggestion="Rewrite in active voice.",
            )
        ]
        self.refined = "Use the dashboard to add a device."
        self.mermaid = "flowchart TD\n  A[Open portal] --> B[Add device]"
        self.delays: dict[str, float] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, object]] = []

    async def _enter(self, name: str, request: object) -> None:
        self.calls.append((name, request))
        delay = self.delays.get(name)
        if delay:
            await asyncio.sleep(delay)
        failure = self.failures.get(name)
        if failure is not None:
            raise failure

    def called(self, name: str) -> list[object]:
        return [request for method, request in self.calls if method == name]

    async def analyze(self, request):
        await self._enter("analyze", request)
        return AnalysisResponse(questions=list(self.questions))

    async def synthesize(self, request):
        await self._enter("synthesize", request)
        return SynthesisResponse(document=self.document)

    async def refine(self, request):
        await self._enter("refine", request)
        return RefinementResponse(refined=self.refined)

    async def check_compliance(self, request):
        await self._enter("check_compliance", request)
        return list(self.advisory)

    async def recommend_format(self, request):
        await self._enter("recommend_format", request)
        return self.recommendation

    async def generate_diagram(self, request):
        await self._enter("generate_diagram", request)
        return DiagramResponse(mermaid=self.mermaid)


@pytest.fixture()
def fake_service() -> FakeGenerativeService:
    return FakeGenerativeService()


@pytest.fixture()
def fast_settings() -> Settings:
    return Settings(call_timeout=1.0, advisory_timeout=1.0, recommend_debounce=0.01)
