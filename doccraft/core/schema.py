from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

DocType = Literal["user-guide", "quick-start", "api-reference", "troubleshooting", "release-notes"]
Audience = Literal["non-technical", "technical", "mixed"]
Tone = Literal["conversational", "formal", "instructional"]
QuestionCategory = Literal["missing", "ambiguous", "assumption"]
IssueCategory = Literal["terminology", "voice", "structure", "style"]
Severity = Literal["error", "warning", "suggestion"]
RefineAction = Literal["simplify", "expand", "example", "troubleshoot", "formal", "concise"]

DOC_TYPES: tuple[str, ...] = ("user-guide", "quick-start", "api-reference", "troubleshooting", "release-notes")
REFINE_ACTIONS: tuple[str, ...] = ("simplify", "expand", "example", "troubleshoot", "formal", "concise")

PROBLEMATIC_TEXT_LIMIT = 120


class DocConfig(BaseModel):
    doc_type: DocType = "user-guide"
    audience: Audience = "non-technical"
    tone: Tone = "conversational"
    custom_instructions: str = ""


class GapQuestion(BaseModel):
    id: str
    question: str
    category: QuestionCategory = "missing"
    answer: str = ""
    skipped: bool = False


class ComplianceIssue(BaseModel):
    id: str
    category: IssueCategory
    severity: Severity
    rule: str
    problematic_text: str | None = None
    suggestion: str

    @field_validator("problematic_text")
    @classmethod
    def _truncate_excerpt(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value[:PROBLEMATIC_TEXT_LIMIT]


class TerminologyIssue(BaseModel):
    term: str
    issue_type: Literal["forbidden", "preferred"]
    message: str
    suggestion: str | None = None


class GlossaryData(BaseModel):
    approved_terms: list[str] = Field(default_factory=list)
    forbidden_terms: list[str] = Field(default_factory=list)
    preferred_terms: dict[str, str] = Field(default_factory=dict)


class DocSession(BaseModel):
    id: str
    timestamp: float
    config: DocConfig
    input_summary: str
    generated_doc: str


class FormatRecommendation(BaseModel):
    type: DocType
    reason: str = ""
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)


# ----------------------------------------------------------------------
# collaborator request / response contracts
# ----------------------------------------------------------------------
class AnalysisRequest(BaseModel):
    content: str
    config: DocConfig
    context: str = ""


class AnalysisResponse(BaseModel):
    questions: list[GapQuestion]


class SynthesisRequest(BaseModel):
    content: str
    config: DocConfig
    answers: list[GapQuestion]
    context: str = ""


class SynthesisResponse(BaseModel):
    document: str


class RefinementRequest(BaseModel):
    selected_text: str
    action: RefineAction
    full_document: str
    config: DocConfig


class RefinementResponse(BaseModel):
    refined: str


class ComplianceRequest(BaseModel):
    document: str


class RecommendationRequest(BaseModel):
    content: str


class DiagramRequest(BaseModel):
    document: str
    diagram_type: str | None = None


class DiagramResponse(BaseModel):
    mermaid: str
