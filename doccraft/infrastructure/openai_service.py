"""Generative service backed by the OpenAI chat completions API."""
from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx
import openai
from pydantic import ValidationError

from doccraft.core.issues import parse_advisory_issues
from doccraft.core.schema import (
    DOC_TYPES,
    AnalysisRequest,
    AnalysisResponse,
    ComplianceIssue,
    ComplianceRequest,
    DiagramRequest,
    DiagramResponse,
    FormatRecommendation,
    GapQuestion,
    RecommendationRequest,
    RefinementRequest,
    RefinementResponse,
    SynthesisRequest,
    SynthesisResponse,
)

from . import prompts
from .generative import GenerativeServiceError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|mermaid)?\s*", re.IGNORECASE)


class OpenAIGenerativeService:
    """Implements :class:`GenerativeService` with two model tiers.

    The analysis model handles question generation, synthesis and diagrams;
    the lighter assist model handles refinement, compliance and format
    recommendations.
    """

    def __init__(
        self,
        api_key: str,
        *,
        analysis_model: str = "gpt-4o",
        assist_model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0, http_client=http_client)
        self._analysis_model = analysis_model
        self._assist_model = assist_model

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _complete(
        self,
        *,
        model: str,
        system: str,
        user: str,
        max_tokens: int,
        temperature: float,
        json_object: bool = False,
    ) -> str:
        kwargs: dict[str, Any] = {}
        if json_object:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs,
            )
        except openai.OpenAIError as exc:
            raise GenerativeServiceError(str(exc)) from exc
        if not response.choices:
            raise GenerativeServiceError("empty response from generative service")
        return response.choices[0].message.content or ""

    @staticmethod
    def _strip_fences(raw: str) -> str:
        return _FENCE_RE.sub("", raw).strip()

    @classmethod
    def _parse_json(cls, raw: str) -> Any:
        try:
            return json.loads(cls._strip_fences(raw))
        except json.JSONDecodeError as exc:
            raise GenerativeServiceError("generative service returned malformed JSON") from exc

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def analyze(self, request: AnalysisRequest) -> AnalysisResponse:
        raw = await self._complete(
            model=self._analysis_model,
            system=prompts.analysis_system_prompt(request.config),
            user=prompts.analysis_user_prompt(request.content, request.context),
            max_tokens=2000,
            temperature=0.3,
        )
        data = self._parse_json(raw)
        if isinstance(data, dict):
            data = data.get("questions")
        if not isinstance(data, list):
            raise GenerativeServiceError("analysis response is not a list of questions")
        try:
            questions = [
                GapQuestion(
                    id=str(item.get("id") or f"q{index}"),
                    question=str(item["question"]),
                    category=item.get("category") or "missing",
                )
                for index, item in enumerate(data, start=1)
            ]
        except (AttributeError, KeyError, TypeError, ValidationError) as exc:
            raise GenerativeServiceError("analysis response contains malformed questions") from exc
        return AnalysisResponse(questions=questions)

    async def synthesize(self, request: SynthesisRequest) -> SynthesisResponse:
        document = await self._complete(
            model=self._analysis_model,
            system=prompts.synthesis_system_prompt(request.config),
            user=prompts.synthesis_user_prompt(request.content, request.answers, request.context),
            max_tokens=4000,
            temperature=0.4,
        )
        if not document.strip():
            raise GenerativeServiceError("Failed to generate documentation.")
        return SynthesisResponse(document=document)

    async def refine(self, request: RefinementRequest) -> RefinementResponse:
        refined = await self._complete(
            model=self._assist_model,
            system=prompts.refine_system_prompt(request.action, request.config),
            user=f"Section to refine:\n\n{request.selected_text}",
            max_tokens=1500,
            temperature=0.3,
        )
        return RefinementResponse(refined=refined.strip() or request.selected_text)

    async def check_compliance(self, request: ComplianceRequest) -> list[ComplianceIssue]:
        raw = await self._complete(
            model=self._assist_model,
            system=prompts.COMPLIANCE_SYSTEM_PROMPT,
            user=request.document[:14000],
            max_tokens=2000,
            temperature=0.2,
        )
        return parse_advisory_issues(raw)

    async def recommend_format(self, request: RecommendationRequest) -> FormatRecommendation:
        raw = await self._complete(
            model=self._assist_model,
            system=prompts.RECOMMEND_SYSTEM_PROMPT,
            user=f"Analyze this content and recommend a doc type:\n\n{request.content[:3000]}",
            max_tokens=120,
            temperature=0.2,
            json_object=True,
        )
        data = self._parse_json(raw)
        if not isinstance(data, dict):
            raise GenerativeServiceError("recommendation response is not an object")
        doc_type = data.get("type") if data.get("type") in DOC_TYPES else "user-guide"
        try:
            confidence = float(data.get("confidence"))
        except (TypeError, ValueError):
            confidence = 0.7
        if confidence != confidence:  # NaN
            confidence = 0.7
        confidence = min(1.0, max(0.0, confidence))
        return FormatRecommendation(type=doc_type, reason=str(data.get("reason") or ""), confidence=confidence)

    async def generate_diagram(self, request: DiagramRequest) -> DiagramResponse:
        raw = await self._complete(
            model=self._analysis_model,
            system=prompts.diagram_system_prompt(request.diagram_type),
            user=f"Generate a Mermaid diagram for this documentation:\n\n{request.document[:6000]}",
            max_tokens=800,
            temperature=0.3,
        )
        mermaid = self._strip_fences(raw)
        if not mermaid:
            raise GenerativeServiceError("No diagram generated")
        return DiagramResponse(mermaid=mermaid)

    async def close(self) -> None:  # pragma: no cover - best effort cleanup
        await self._client.close()


__all__ = ["OpenAIGenerativeService"]
