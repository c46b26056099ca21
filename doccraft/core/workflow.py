"""Stage state machine for the documentation workflow.

``transition`` is a pure function: it takes the current :class:`WorkflowState`
and an event, and returns the next state together with the side-effecting
intents the driver must carry out (collaborator calls, history writes,
background lookups). The machine itself never performs I/O.

Stages advance ``upload -> analyzing -> questions -> generating -> editing``.
A failed analysis returns to ``upload`` and a failed synthesis returns to
``questions``. ``reset`` starts a new run from ``upload`` and ``restore``
jumps straight to ``editing`` with a stored session.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Union

from doccraft.core.questions import GapQuestionSet
from doccraft.core.schema import DocConfig, DocSession, FormatRecommendation, GapQuestion, GlossaryData

INPUT_SUMMARY_CHARS = 100
RECOMMEND_MIN_CHARS = 150
RECOMMEND_THRESHOLD = 0.6


class WorkflowStage(str, Enum):
    UPLOAD = "upload"
    ANALYZING = "analyzing"
    QUESTIONS = "questions"
    GENERATING = "generating"
    EDITING = "editing"


class InvalidTransitionError(Exception):
    """Raised when an event is not accepted in the current stage."""

    def __init__(self, stage: WorkflowStage, action: str) -> None:
        super().__init__(f"{action} is not valid in stage {stage.value}")
        self.stage = stage
        self.action = action


@dataclass(slots=True)
class WorkflowState:
    stage: WorkflowStage = WorkflowStage.UPLOAD
    run_id: int = 0
    content: str = ""
    file_names: tuple[str, ...] = ()
    content_version: int = 0
    config: DocConfig = field(default_factory=DocConfig)
    context_text: str = ""
    glossary: GlossaryData | None = None
    questions: GapQuestionSet = field(default_factory=GapQuestionSet)
    document: str = ""
    recommendation: FormatRecommendation | None = None
    error: str = ""

    def completion(self) -> tuple[int, int]:
        return self.questions.completion()

    def as_dict(self) -> dict[str, object]:
        answered, total = self.completion()
        return {
            "stage": self.stage.value,
            "run_id": self.run_id,
            "content": self.content,
            "file_names": list(self.file_names),
            "content_version": self.content_version,
            "config": self.config.model_dump(),
            "context_text": self.context_text,
            "glossary": self.glossary.model_dump() if self.glossary else None,
            "questions": [question.model_dump() for question in self.questions],
            "completion": {"answered": answered, "total": total},
            "document": self.document,
            "recommendation": self.recommendation.model_dump() if self.recommendation else None,
            "error": self.error,
        }


# ----------------------------------------------------------------------
# events
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ContentChanged:
    content: str
    file_names: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ConfigChanged:
    config: DocConfig


@dataclass(frozen=True, slots=True)
class ContextChanged:
    context_text: str
    glossary: GlossaryData | None = None


@dataclass(frozen=True, slots=True)
class StartAnalysis:
    pass


@dataclass(frozen=True, slots=True)
class AnalysisSucceeded:
    run_id: int
    questions: tuple[GapQuestion, ...]


@dataclass(frozen=True, slots=True)
class AnalysisFailed:
    run_id: int
    message: str


@dataclass(frozen=True, slots=True)
class AnswerQuestion:
    question_id: str
    answer: str


@dataclass(frozen=True, slots=True)
class ToggleSkip:
    question_id: str


@dataclass(frozen=True, slots=True)
class SubmitAnswers:
    pass


@dataclass(frozen=True, slots=True)
class SynthesisSucceeded:
    run_id: int
    document: str


@dataclass(frozen=True, slots=True)
class SynthesisFailed:
    run_id: int
    message: str


@dataclass(frozen=True, slots=True)
class DocumentEdited:
    document: str


@dataclass(frozen=True, slots=True)
class RefinementApplied:
    run_id: int
    selected_text: str
    refined: str


@dataclass(frozen=True, slots=True)
class RefinementFailed:
    run_id: int
    message: str


@dataclass(frozen=True, slots=True)
class RecommendationReceived:
    content_version: int
    recommendation: FormatRecommendation


@dataclass(frozen=True, slots=True)
class AcceptRecommendation:
    pass


@dataclass(frozen=True, slots=True)
class Reset:
    pass


@dataclass(frozen=True, slots=True)
class RestoreSession:
    session: DocSession


Event = Union[
    ContentChanged,
    ConfigChanged,
    ContextChanged,
    StartAnalysis,
    AnalysisSucceeded,
    AnalysisFailed,
    AnswerQuestion,
    ToggleSkip,
    SubmitAnswers,
    SynthesisSucceeded,
    SynthesisFailed,
    DocumentEdited,
    RefinementApplied,
    RefinementFailed,
    RecommendationReceived,
    AcceptRecommendation,
    Reset,
    RestoreSession,
]


# ----------------------------------------------------------------------
# intents
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class InvokeAnalysis:
    run_id: int
    content: str
    config: DocConfig
    context: str


@dataclass(frozen=True, slots=True)
class InvokeSynthesis:
    run_id: int
    content: str
    config: DocConfig
    answers: tuple[GapQuestion, ...]
    context: str


@dataclass(frozen=True, slots=True)
class SaveSession:
    config: DocConfig
    input_summary: str
    document: str


@dataclass(frozen=True, slots=True)
class ScheduleRecommendation:
    content_version: int
    content: str


@dataclass(frozen=True, slots=True)
class CancelRecommendation:
    pass


Intent = Union[InvokeAnalysis, InvokeSynthesis, SaveSession, ScheduleRecommendation, CancelRecommendation]


@dataclass(frozen=True, slots=True)
class Transition:
    state: WorkflowState
    intents: tuple[Intent, ...] = ()


# ----------------------------------------------------------------------
# transition function
# ----------------------------------------------------------------------
def _require_stage(state: WorkflowState, event: object, *stages: WorkflowStage) -> None:
    if state.stage not in stages:
        raise InvalidTransitionError(state.stage, type(event).__name__)


def _new_run(state: WorkflowState) -> WorkflowState:
    """Clear run-scoped state; the content version keeps counting."""

    return WorkflowState(run_id=state.run_id + 1, content_version=state.content_version + 1)


def _unchanged(state: WorkflowState) -> Transition:
    return Transition(state=state)


def transition(state: WorkflowState, event: Event) -> Transition:
    if isinstance(event, ContentChanged):
        _require_stage(state, event, WorkflowStage.UPLOAD)
        version = state.content_version + 1
        next_state = replace(
            state,
            content=event.content,
            file_names=tuple(event.file_names),
            content_version=version,
            recommendation=None,
            error="",
        )
        intents: tuple[Intent, ...] = (CancelRecommendation(),)
        if len(event.content.strip()) >= RECOMMEND_MIN_CHARS:
            intents = (ScheduleRecommendation(content_version=version, content=event.content),)
        return Transition(state=next_state, intents=intents)

    if isinstance(event, ConfigChanged):
        _require_stage(state, event, WorkflowStage.UPLOAD)
        recommendation = state.recommendation
        if recommendation is not None and recommendation.type == event.config.doc_type:
            recommendation = None
        return Transition(state=replace(state, config=event.config, recommendation=recommendation))

    if isinstance(event, ContextChanged):
        _require_stage(state, event, WorkflowStage.UPLOAD)
        return Transition(state=replace(state, context_text=event.context_text, glossary=event.glossary))

    if isinstance(event, StartAnalysis):
        if state.stage is not WorkflowStage.UPLOAD:
            return _unchanged(state)
        if not state.content.strip():
            return Transition(state=replace(state, error="Please upload or paste some content first."))
        next_state = replace(state, stage=WorkflowStage.ANALYZING, error="", recommendation=None)
        return Transition(
            state=next_state,
            intents=(
                CancelRecommendation(),
                InvokeAnalysis(
                    run_id=state.run_id,
                    content=state.content,
                    config=state.config,
                    context=state.context_text,
                ),
            ),
        )

    if isinstance(event, AnalysisSucceeded):
        if state.stage is not WorkflowStage.ANALYZING or event.run_id != state.run_id:
            return _unchanged(state)
        questions = GapQuestionSet.from_payload(event.questions)
        return Transition(state=replace(state, stage=WorkflowStage.QUESTIONS, questions=questions, error=""))

    if isinstance(event, AnalysisFailed):
        if state.stage is not WorkflowStage.ANALYZING or event.run_id != state.run_id:
            return _unchanged(state)
        return Transition(state=replace(state, stage=WorkflowStage.UPLOAD, error=event.message))

    if isinstance(event, AnswerQuestion):
        _require_stage(state, event, WorkflowStage.QUESTIONS)
        questions = state.questions.copy()
        questions.set_answer(event.question_id, event.answer)
        return Transition(state=replace(state, questions=questions))

    if isinstance(event, ToggleSkip):
        _require_stage(state, event, WorkflowStage.QUESTIONS)
        questions = state.questions.copy()
        questions.toggle_skip(event.question_id)
        return Transition(state=replace(state, questions=questions))

    if isinstance(event, SubmitAnswers):
        _require_stage(state, event, WorkflowStage.QUESTIONS)
        next_state = replace(state, stage=WorkflowStage.GENERATING, error="")
        return Transition(
            state=next_state,
            intents=(
                InvokeSynthesis(
                    run_id=state.run_id,
                    content=state.content,
                    config=state.config,
                    answers=tuple(state.questions.to_list()),
                    context=state.context_text,
                ),
            ),
        )

    if isinstance(event, SynthesisSucceeded):
        if state.stage is not WorkflowStage.GENERATING or event.run_id != state.run_id:
            return _unchanged(state)
        next_state = replace(
            state,
            stage=WorkflowStage.EDITING,
            document=event.document,
            questions=GapQuestionSet(),
            error="",
        )
        return Transition(
            state=next_state,
            intents=(
                SaveSession(
                    config=state.config,
                    input_summary=state.content[:INPUT_SUMMARY_CHARS],
                    document=event.document,
                ),
            ),
        )

    if isinstance(event, SynthesisFailed):
        if state.stage is not WorkflowStage.GENERATING or event.run_id != state.run_id:
            return _unchanged(state)
        return Transition(state=replace(state, stage=WorkflowStage.QUESTIONS, error=event.message))

    if isinstance(event, DocumentEdited):
        _require_stage(state, event, WorkflowStage.EDITING)
        return Transition(state=replace(state, document=event.document))

    if isinstance(event, RefinementApplied):
        if state.stage is not WorkflowStage.EDITING or event.run_id != state.run_id:
            return _unchanged(state)
        if event.selected_text not in state.document:
            return Transition(state=replace(state, error="The selected text is no longer in the document."))
        document = state.document.replace(event.selected_text, event.refined, 1)
        return Transition(state=replace(state, document=document, error=""))

    if isinstance(event, RefinementFailed):
        if state.stage is not WorkflowStage.EDITING or event.run_id != state.run_id:
            return _unchanged(state)
        return Transition(state=replace(state, error=event.message))

    if isinstance(event, RecommendationReceived):
        # late answers for content or a stage the user already left are dropped
        if state.stage is not WorkflowStage.UPLOAD or event.content_version != state.content_version:
            return _unchanged(state)
        recommendation = event.recommendation
        if recommendation.confidence < RECOMMEND_THRESHOLD or recommendation.type == state.config.doc_type:
            return Transition(state=replace(state, recommendation=None))
        return Transition(state=replace(state, recommendation=recommendation))

    if isinstance(event, AcceptRecommendation):
        _require_stage(state, event, WorkflowStage.UPLOAD)
        if state.recommendation is None:
            return _unchanged(state)
        config = state.config.model_copy(update={"doc_type": state.recommendation.type})
        return Transition(state=replace(state, config=config, recommendation=None))

    if isinstance(event, Reset):
        return Transition(state=_new_run(state), intents=(CancelRecommendation(),))

    if isinstance(event, RestoreSession):
        session = event.session
        restored = replace(
            _new_run(state),
            stage=WorkflowStage.EDITING,
            config=session.config,
            document=session.generated_doc,
        )
        return Transition(state=restored, intents=(CancelRecommendation(),))

    raise InvalidTransitionError(state.stage, type(event).__name__)
