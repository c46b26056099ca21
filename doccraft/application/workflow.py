"""Asynchronous driver around the workflow state machine.

:class:`DocumentWorkflow` owns one user's :class:`WorkflowState`. Every
change goes through :func:`doccraft.core.workflow.transition`; the driver
then carries out the returned intents, calling the generative service under
a bounded wait and feeding the outcome back into the machine as events.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from doccraft.core import workflow as machine
from doccraft.core.glossary import combine_context, detect_glossary
from doccraft.core.issues import IssueBoard
from doccraft.core.schema import (
    AnalysisRequest,
    ComplianceIssue,
    ComplianceRequest,
    DiagramRequest,
    DiagramResponse,
    DocConfig,
    GlossaryData,
    RecommendationRequest,
    RefinementRequest,
    SynthesisRequest,
)
from doccraft.core.settings import Settings
from doccraft.core.terminology import compliance_issues
from doccraft.core.validation import (
    InputValidationError,
    validate_refine_action,
    validate_selection,
    validate_source_content,
)
from doccraft.core.workflow import InvalidTransitionError, WorkflowStage, WorkflowState
from doccraft.domain import LoadedFile
from doccraft.infrastructure.generative import GenerativeService
from doccraft.infrastructure.github import FetchedContent
from doccraft.infrastructure.history import HistoryStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DocumentWorkflow:
    """One documentation run, from source upload to the edited document."""

    def __init__(
        self,
        workflow_id: str,
        *,
        service: GenerativeService,
        history: HistoryStore,
        settings: Settings | None = None,
    ) -> None:
        self.workflow_id = workflow_id
        self._service = service
        self._history = history
        self._settings = settings or Settings()
        self._state = WorkflowState()
        self._context_files: list[LoadedFile] = []
        self._issues: IssueBoard | None = None
        self._diagram: str | None = None
        self._recommend_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # state access
    # ------------------------------------------------------------------
    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def stage(self) -> WorkflowStage:
        return self._state.stage

    @property
    def issues(self) -> IssueBoard | None:
        return self._issues

    @property
    def context_files(self) -> list[LoadedFile]:
        return list(self._context_files)

    def snapshot(self) -> dict[str, object]:
        data = self._state.as_dict()
        data["workflow_id"] = self.workflow_id
        data["context_files"] = [item.as_dict() for item in self._context_files]
        data["diagram"] = self._diagram
        data["issues"] = self._issues.snapshot() if self._issues else None
        return data

    # ------------------------------------------------------------------
    # dispatch and intents
    # ------------------------------------------------------------------
    async def dispatch(self, event: machine.Event) -> WorkflowState:
        previous_run = self._state.run_id
        result = machine.transition(self._state, event)
        self._state = result.state
        if self._state.run_id != previous_run:
            self._context_files = []
            self._issues = None
            self._diagram = None
        for intent in result.intents:
            await self._execute(intent)
        return self._state

    async def _execute(self, intent: machine.Intent) -> None:
        if isinstance(intent, machine.InvokeAnalysis):
            await self._run_analysis(intent)
        elif isinstance(intent, machine.InvokeSynthesis):
            await self._run_synthesis(intent)
        elif isinstance(intent, machine.SaveSession):
            self._history.append(intent.config, intent.input_summary, intent.document)
        elif isinstance(intent, machine.ScheduleRecommendation):
            self._cancel_recommendation()
            self._recommend_task = asyncio.create_task(
                self._recommend_later(intent.content_version, intent.content)
            )
        elif isinstance(intent, machine.CancelRecommendation):
            self._cancel_recommendation()

    async def _bounded(self, call: Awaitable[T], timeout: float) -> T:
        return await asyncio.wait_for(call, timeout=timeout)

    async def _run_analysis(self, intent: machine.InvokeAnalysis) -> None:
        request = AnalysisRequest(content=intent.content, config=intent.config, context=intent.context)
        try:
            response = await self._bounded(self._service.analyze(request), self._settings.call_timeout)
        except asyncio.TimeoutError:
            logger.warning("analysis timed out for workflow %s", self.workflow_id)
            await self.dispatch(machine.AnalysisFailed(intent.run_id, "Analysis timed out. Please try again."))
            return
        except Exception as exc:  # noqa: BLE001 - any collaborator failure returns to upload
            logger.warning("analysis failed for workflow %s: %s", self.workflow_id, exc)
            message = str(exc) or "Something went wrong during analysis."
            await self.dispatch(machine.AnalysisFailed(intent.run_id, message))
            return
        logger.info("analysis returned %d questions for workflow %s", len(response.questions), self.workflow_id)
        await self.dispatch(machine.AnalysisSucceeded(intent.run_id, tuple(response.questions)))

    async def _run_synthesis(self, intent: machine.InvokeSynthesis) -> None:
        request = SynthesisRequest(
            content=intent.content,
            config=intent.config,
            answers=list(intent.answers),
            context=intent.context,
        )
        try:
            response = await self._bounded(self._service.synthesize(request), self._settings.call_timeout)
        except asyncio.TimeoutError:
            logger.warning("synthesis timed out for workflow %s", self.workflow_id)
            await self.dispatch(machine.SynthesisFailed(intent.run_id, "Generation timed out. Please try again."))
            return
        except Exception as exc:  # noqa: BLE001 - any collaborator failure returns to questions
            logger.warning("synthesis failed for workflow %s: %s", self.workflow_id, exc)
            message = str(exc) or "Something went wrong during generation."
            await self.dispatch(machine.SynthesisFailed(intent.run_id, message))
            return
        await self.dispatch(machine.SynthesisSucceeded(intent.run_id, response.document))

    # ------------------------------------------------------------------
    # format recommendation (debounced, advisory)
    # ------------------------------------------------------------------
    def _cancel_recommendation(self) -> None:
        task = self._recommend_task
        self._recommend_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _recommend_later(self, content_version: int, content: str) -> None:
        await asyncio.sleep(self._settings.recommend_debounce)
        try:
            recommendation = await self._bounded(
                self._service.recommend_format(RecommendationRequest(content=content)),
                self._settings.advisory_timeout,
            )
        except Exception as exc:  # noqa: BLE001 - recommendations are advisory
            logger.warning("format recommendation failed: %s", exc)
            return
        await self.dispatch(machine.RecommendationReceived(content_version, recommendation))

    async def settle_recommendation(self) -> None:
        """Wait for a pending recommendation lookup, if any."""

        task = self._recommend_task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    # ------------------------------------------------------------------
    # upload stage
    # ------------------------------------------------------------------
    async def set_content(self, content: str, file_names: list[str] | tuple[str, ...] = ()) -> WorkflowState:
        return await self.dispatch(machine.ContentChanged(content=content, file_names=tuple(file_names)))

    async def configure(self, config: DocConfig) -> WorkflowState:
        return await self.dispatch(machine.ConfigChanged(config=config))

    async def set_context(self, context_text: str, glossary: GlossaryData | None = None) -> WorkflowState:
        return await self.dispatch(machine.ContextChanged(context_text=context_text, glossary=glossary))

    async def add_context_file(self, name: str, text: str) -> LoadedFile | None:
        """Attach an uploaded context document; JSON glossaries replace the active glossary."""

        if any(item.name == name for item in self._context_files):
            return None
        detection = detect_glossary(text) if name.lower().endswith(".json") else None
        if detection is not None and detection.is_glossary:
            await self.set_context(self._state.context_text, detection.data)
            loaded = LoadedFile(name=name, chars=0, is_glossary=True)
        else:
            await self.set_context(combine_context(self._state.context_text, text), self._state.glossary)
            loaded = LoadedFile(name=name, chars=len(text))
        self._context_files.append(loaded)
        return loaded

    async def add_context_text(self, text: str, *, label: str = "Pasted content", source: str = "paste") -> LoadedFile:
        if not text.strip():
            raise InputValidationError("context text must not be empty")
        await self.set_context(combine_context(self._state.context_text, text), self._state.glossary)
        loaded = LoadedFile(name=label, chars=len(text), source=source)
        self._context_files.append(loaded)
        return loaded

    def require_upload(self, action: str) -> None:
        if self._state.stage is not WorkflowStage.UPLOAD:
            raise InvalidTransitionError(self._state.stage, action)

    async def add_fetched_context(self, fetched: FetchedContent) -> LoadedFile:
        return await self.add_context_text(fetched.content, label=fetched.label, source="github")

    async def clear_context(self) -> WorkflowState:
        state = await self.set_context("", None)
        self._context_files = []
        return state

    async def accept_recommendation(self) -> WorkflowState:
        return await self.dispatch(machine.AcceptRecommendation())

    async def start_analysis(self) -> WorkflowState:
        if self._state.stage is not WorkflowStage.UPLOAD:
            return self._state
        content = self._state.content
        state = await self.dispatch(machine.StartAnalysis())
        if not content.strip():
            validate_source_content(content)
        return state

    # ------------------------------------------------------------------
    # questions stage
    # ------------------------------------------------------------------
    async def answer(self, question_id: str, text: str) -> WorkflowState:
        return await self.dispatch(machine.AnswerQuestion(question_id=question_id, answer=text))

    async def toggle_skip(self, question_id: str) -> WorkflowState:
        return await self.dispatch(machine.ToggleSkip(question_id=question_id))

    async def submit_answers(self) -> WorkflowState:
        return await self.dispatch(machine.SubmitAnswers())

    # ------------------------------------------------------------------
    # editing stage
    # ------------------------------------------------------------------
    def _require_editing(self, action: str) -> None:
        if self._state.stage is not WorkflowStage.EDITING:
            raise InvalidTransitionError(self._state.stage, action)

    async def edit_document(self, document: str) -> WorkflowState:
        return await self.dispatch(machine.DocumentEdited(document=document))

    async def refine(self, selected_text: str, action: str) -> WorkflowState:
        self._require_editing("Refine")
        validate_refine_action(action)
        validate_selection(selected_text, self._state.document)
        run_id = self._state.run_id
        request = RefinementRequest(
            selected_text=selected_text,
            action=action,  # type: ignore[arg-type]
            full_document=self._state.document,
            config=self._state.config,
        )
        try:
            response = await self._bounded(self._service.refine(request), self._settings.call_timeout)
        except Exception as exc:  # noqa: BLE001 - refinement failure keeps the document as is
            logger.warning("refinement failed for workflow %s: %r", self.workflow_id, exc)
            return await self.dispatch(machine.RefinementFailed(run_id, "Refinement failed. Please try again."))
        return await self.dispatch(machine.RefinementApplied(run_id, selected_text, response.refined))

    async def generate_diagram(self, diagram_type: str | None = None) -> DiagramResponse:
        self._require_editing("GenerateDiagram")
        if not self._state.document.strip():
            raise InputValidationError("Document is required")
        request = DiagramRequest(document=self._state.document, diagram_type=diagram_type)
        response = await self._bounded(self._service.generate_diagram(request), self._settings.call_timeout)
        self._diagram = response.mermaid
        return response

    async def check_compliance(self) -> IssueBoard:
        """Run the rule engine and the advisory checker, then merge their findings.

        The advisory checker may fail or time out; the rule-engine findings
        are returned on their own in that case.
        """

        self._require_editing("CheckCompliance")
        document = self._state.document
        if not document.strip():
            raise InputValidationError("No document provided")

        rule_issues = compliance_issues(document, self._state.glossary)
        advisory: list[ComplianceIssue] = []
        try:
            advisory = await self._bounded(
                self._service.check_compliance(ComplianceRequest(document=document)),
                self._settings.advisory_timeout,
            )
        except Exception as exc:  # noqa: BLE001 - advisory findings are optional
            logger.warning("advisory compliance check failed: %r", exc)
        self._issues = IssueBoard.from_sources(rule_issues, advisory)
        return self._issues

    # ------------------------------------------------------------------
    # run lifecycle
    # ------------------------------------------------------------------
    async def reset(self) -> WorkflowState:
        return await self.dispatch(machine.Reset())

    async def restore(self, session_id: str) -> WorkflowState:
        session = self._history.get(session_id)
        return await self.dispatch(machine.RestoreSession(session=session))
