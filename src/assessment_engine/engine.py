"""AssessmentFlow — the state machine that drives one assessment run.

Phase overview:
    email-capture       — PRE_GATED only: lead form before the first question
    questions           — one question at a time, routed by the resolver
    post-email-capture  — POST_GATED only: lead form after submission
    complete            — result URL known, caller navigates away

The flow loads the question graph once, then reacts to discrete user
actions (lead form submits, answer clicks).  Calls to the data service are
the only suspension points; a guard rejects a second submission while one is
in flight.  Boundary failures leave the phase unchanged and surface a
retryable message on the returned step; graph interpretation problems are
degraded by the resolver and never reach the user.

Usage::

    flow = AssessmentFlow(service, slug="gtm-assessment")
    step = await flow.load()
    while step.type == "question":
        step = await flow.select_answer(step.question.id, chosen_answer_id)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from assessment_engine.constants import (
    LEAD_ERROR_MESSAGE,
    RESULT_URL_TEMPLATE,
    SUBMIT_ERROR_MESSAGE,
    UNAVAILABLE_MESSAGE,
)
from assessment_engine.errors import AssessmentUnavailableError, FlowBusyError, ServiceError
from assessment_engine.evaluator import VisibilityEvaluator
from assessment_engine.graph import QuestionGraph
from assessment_engine.interfaces import AssessmentDataService
from assessment_engine.models.graph import GateBehavior
from assessment_engine.models.routing import QuestionRoute, Route
from assessment_engine.models.service import (
    CaptureLeadRequest,
    LeadData,
    SubmitRequest,
    SubmittedAnswer,
)
from assessment_engine.models.session import (
    AnswerOption,
    CompletionStep,
    FlowPhase,
    FlowStep,
    LeadCaptureStep,
    QuestionPayload,
    QuestionStep,
    SessionState,
    UnavailableStep,
)
from assessment_engine.router import RoutingResolver
from assessment_engine.scoring import ScoringStrategy, strategy_for

logger = logging.getLogger(__name__)


def _format_validation_error(exc: ValidationError) -> str:
    """Turn a pydantic error into a short user-facing message."""
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "form"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


class AssessmentFlow:
    """Drives a single run of an assessment.

    The flow exclusively owns ``state``; callers should treat it as
    read-only and act only through the public methods.

    Args:
        service: the data service used to fetch content and submit results
        slug: public slug of the assessment (required for :meth:`load`)
    """

    def __init__(
        self,
        service: AssessmentDataService,
        slug: str | None = None,
        *,
        evaluator: VisibilityEvaluator | None = None,
        resolver: RoutingResolver | None = None,
    ) -> None:
        self._service = service
        self._slug = slug
        self._evaluator = evaluator or VisibilityEvaluator()
        self._resolver = resolver or RoutingResolver(self._evaluator)

        self.graph: QuestionGraph | None = None
        self.state = SessionState()
        self._scoring: ScoringStrategy | None = None
        self._unavailable: str | None = None
        self._in_flight = False

    # ==================================================================
    # Lifecycle
    # ==================================================================

    async def load(self) -> FlowStep:
        """Fetch config, questions and answers, then start the run.

        A missing or unpublished config, a failed fetch, or an assessment
        without questions yields a terminal :class:`UnavailableStep`.
        """
        if not self._slug:
            raise ValueError("AssessmentFlow.load() requires a slug")

        try:
            config = await self._service.fetch_config(self._slug)
            if config is None or not config.published:
                return self._mark_unavailable(f"config {self._slug!r} not found or not published")
            questions = await self._service.fetch_questions(config.id)
            answers = await self._service.fetch_answers(config.id)
        except ServiceError as exc:
            return self._mark_unavailable(f"fetch failed: {exc}")

        return self.start(QuestionGraph(config, questions, answers))

    def start(self, graph: QuestionGraph) -> FlowStep:
        """Start a fresh run over an already-built graph.

        Picks the initial phase from the gate behavior: PRE_GATED starts at
        the lead form, everything else at the entry question.
        """
        try:
            graph.ensure_runnable()
        except AssessmentUnavailableError as exc:
            return self._mark_unavailable(str(exc))

        self.graph = graph
        self._scoring = strategy_for(graph.config.scoring_method, self._evaluator)
        self._unavailable = None
        self.state = SessionState()

        if self.gate_behavior == GateBehavior.PRE_GATED:
            self.state.phase = FlowPhase.EMAIL_CAPTURE
        else:
            self._enter_questions()

        logger.info(
            "Started assessment %s (%s, %s) in phase %s",
            graph.config.slug, graph.config.scoring_method.value,
            self.gate_behavior.value, self.state.phase.value,
        )
        return self.current_step()

    def _mark_unavailable(self, detail: str) -> UnavailableStep:
        logger.warning("Assessment %s unavailable: %s", self._slug, detail)
        self._unavailable = UNAVAILABLE_MESSAGE
        return UnavailableStep(reason=UNAVAILABLE_MESSAGE)

    def _enter_questions(self) -> None:
        entry = self.graph.entry_question_id
        self.state.phase = FlowPhase.QUESTIONS
        self.state.current_question_id = entry
        self.state.history = [entry]

    # ==================================================================
    # Read-only views
    # ==================================================================

    @property
    def gate_behavior(self) -> GateBehavior:
        return self._require_graph().config.gate_behavior

    @property
    def is_busy(self) -> bool:
        """True while a submission or lead capture is in flight."""
        return self._in_flight

    def current_step(self) -> FlowStep:
        """Render the present state as a step.  Does not modify state."""
        if self._unavailable is not None:
            return UnavailableStep(reason=self._unavailable)

        self._require_graph()
        phase = self.state.phase

        if phase in (FlowPhase.EMAIL_CAPTURE, FlowPhase.POST_EMAIL_CAPTURE):
            return LeadCaptureStep(phase=phase, error=self.state.error)
        if phase == FlowPhase.QUESTIONS:
            return self._question_step()
        if phase == FlowPhase.COMPLETE:
            return CompletionStep(
                session_id=self.state.session_id,
                result_url=self.state.result_url,
                bucket_key=self.state.bucket_key,
            )
        raise ValueError(f"Invalid phase: {phase}")

    def _question_step(self) -> QuestionStep:
        graph = self.graph
        question = graph.get_question(self.state.current_question_id)
        payload = QuestionPayload(
            id=question.id,
            question_text=question.question_text,
            description=question.description,
            answers=[
                AnswerOption(id=a.id, answer_text=a.answer_text)
                for a in graph.answers_for(question.id)
            ],
        )
        return QuestionStep(
            question=payload,
            progress=self._scoring.progress(graph, self.state.answers, question.id),
            can_go_back=len(self.state.history) > 1,
            error=self.state.error,
        )

    # ==================================================================
    # Lead capture
    # ==================================================================

    async def submit_lead(self, data: LeadData | dict[str, Any]) -> FlowStep:
        """Handle the lead form in either gate phase.

        Pre-gate: the lead is cached for the final submission and the run
        moves to the entry question.  Nothing is sent yet.

        Post-gate: the lead is sent to the data service against the session
        returned by the submission; its result URL completes the run.

        Invalid form data or a failed capture returns the same lead step
        with ``error`` set.

        Raises:
            ValueError: if the run is not in a lead-capture phase.
            FlowBusyError: if a capture is already in flight.
        """
        phase = self.state.phase
        if phase not in (FlowPhase.EMAIL_CAPTURE, FlowPhase.POST_EMAIL_CAPTURE):
            raise ValueError(
                f"submit_lead is only valid during email-capture or post-email-capture, "
                f"current phase is {phase.value if phase else None}"
            )
        if self._in_flight:
            raise FlowBusyError("A lead capture is already in flight")

        try:
            lead = data if isinstance(data, LeadData) else LeadData.model_validate(data)
        except ValidationError as exc:
            self.state.error = _format_validation_error(exc)
            return self.current_step()

        if phase == FlowPhase.EMAIL_CAPTURE:
            self.state.lead = lead
            self.state.error = None
            self._enter_questions()
            return self.current_step()

        request = CaptureLeadRequest(email=lead.email, name=lead.name, company=lead.company)
        self._in_flight = True
        try:
            resp = await self._service.capture_lead(self.state.session_id, request)
        except ServiceError as exc:
            logger.warning("Lead capture failed for session %s: %s", self.state.session_id, exc)
            self.state.error = LEAD_ERROR_MESSAGE
            return self.current_step()
        finally:
            self._in_flight = False

        self.state.lead = lead
        self.state.result_url = resp.result_url
        self.state.error = None
        self.state.phase = FlowPhase.COMPLETE
        return self.current_step()

    # ==================================================================
    # Question loop
    # ==================================================================

    async def select_answer(self, question_id: str, answer_id: str) -> FlowStep:
        """Record an answer and advance the run.

        ``question_id`` is normally the current question.  It may also be a
        question answered earlier in this run: the run then rewinds to it,
        discarding the answers given after it, and routing is recomputed
        from the new answer.

        Selecting an answer again after a failed submission retries it.

        Raises:
            ValueError: outside the question phase, for a question not on
                this run's path, or for an answer of a different question.
            FlowBusyError: if a submission is already in flight.
        """
        self._require_phase(FlowPhase.QUESTIONS, "select_answer")
        if self._in_flight:
            raise FlowBusyError("A submission is already in flight")

        graph = self.graph
        answer = graph.get_answer(answer_id)
        if answer is None or answer.question_id != question_id:
            raise ValueError(f"Answer {answer_id} not found for question {question_id}")

        if question_id != self.state.current_question_id:
            if question_id not in self.state.history:
                raise ValueError(f"Question {question_id} not found in this run's path")
            self._rewind_to(question_id)

        self.state.answers[question_id] = answer_id
        route = self._resolver.resolve_next(question_id, answer_id, self.state.answers, graph)

        if isinstance(route, QuestionRoute):
            logger.debug("Answer %s -> question %s (%s)", answer_id, route.id, route.source)
            self.state.current_question_id = route.id
            self.state.history.append(route.id)
            self.state.error = None
            return self.current_step()

        return await self._finalize(route)

    def step_back(self) -> FlowStep:
        """Return to the previous question, discarding its answer and later ones.

        Raises:
            ValueError: outside the question phase or at the first question.
            FlowBusyError: if a submission is in flight.
        """
        self._require_phase(FlowPhase.QUESTIONS, "step_back")
        if self._in_flight:
            raise FlowBusyError("A submission is already in flight")
        if len(self.state.history) < 2:
            raise ValueError("Cannot step back: already at the first question")

        self._rewind_to(self.state.history[-2])
        self.state.error = None
        return self.current_step()

    def _rewind_to(self, question_id: str) -> None:
        """Make ``question_id`` current again and forget everything answered from it on."""
        idx = self.state.history.index(question_id)
        for dropped in self.state.history[idx:]:
            self.state.answers.pop(dropped, None)
        self.state.history = self.state.history[: idx + 1]
        self.state.current_question_id = question_id

    # ==================================================================
    # Submission
    # ==================================================================

    async def _finalize(self, route: Route) -> FlowStep:
        """Submit the run once the resolver reports a bucket or no next question."""
        graph = self.graph
        lead = self.state.lead
        request = SubmitRequest(
            answers=[
                SubmittedAnswer(question_id=q, answer_id=a)
                for q, a in self.state.answers.items()
            ],
            email=lead.email if lead else None,
            name=lead.name if lead else None,
            company=lead.company if lead else None,
            phone=lead.phone if lead else None,
        )

        self._in_flight = True
        try:
            resp = await self._service.submit(graph.config.id, request)
        except ServiceError as exc:
            logger.warning("Submission failed for assessment %s: %s", graph.config.slug, exc)
            self.state.error = SUBMIT_ERROR_MESSAGE
            return self.current_step()
        finally:
            self._in_flight = False

        self.state.session_id = resp.session_id
        self.state.bucket_key = self._scoring.local_bucket(route)
        self.state.current_question_id = None
        self.state.error = None

        if self.gate_behavior == GateBehavior.POST_GATED:
            self.state.phase = FlowPhase.POST_EMAIL_CAPTURE
        else:
            self.state.result_url = resp.result_url or RESULT_URL_TEMPLATE.format(
                session_id=resp.session_id
            )
            self.state.phase = FlowPhase.COMPLETE

        logger.info(
            "Assessment %s submitted: session=%s route=%s phase=%s",
            graph.config.slug, resp.session_id, route.kind, self.state.phase.value,
        )
        return self.current_step()

    # ==================================================================
    # Guards
    # ==================================================================

    def _require_graph(self) -> QuestionGraph:
        if self.graph is None:
            raise ValueError("Assessment not loaded: call load() or start() first")
        return self.graph

    def _require_phase(self, phase: FlowPhase, action: str) -> None:
        self._require_graph()
        if self._unavailable is not None:
            raise ValueError(f"{action} is not available: assessment unavailable")
        if self.state.phase != phase:
            current = self.state.phase.value if self.state.phase else None
            raise ValueError(
                f"{action} is only valid during {phase.value}, current phase is {current}"
            )
