"""Session and step models — the contract between the flow controller and its caller.

``SessionState`` is the in-memory state of one run.  It is owned and mutated
only by :class:`~assessment_engine.engine.AssessmentFlow`.

Step types returned by the flow controller:
  - LeadCaptureStep: show the lead form (pre-gate or post-gate)
  - QuestionStep: show one question with its answer options
  - CompletionStep: run finished, navigate to ``result_url``
  - UnavailableStep: assessment cannot be run (terminal, no retry)

The ``FlowStep`` union covers all cases so callers can dispatch on ``type``.
"""

import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .service import LeadData


class FlowPhase(str, enum.Enum):
    """Phases of one assessment run.

    Transitions:
        email-capture -> questions           (pre-gate lead form accepted)
        questions -> post-email-capture      (submitted, POST_GATED only)
        questions -> complete                (submitted, UNGATED / PRE_GATED)
        post-email-capture -> complete       (lead captured, result URL known)
    """

    EMAIL_CAPTURE = "email-capture"
    QUESTIONS = "questions"
    POST_EMAIL_CAPTURE = "post-email-capture"
    COMPLETE = "complete"


class SessionState(BaseModel):
    """Running state of one assessment run (never persisted by this package)."""

    phase: Optional[FlowPhase] = None
    current_question_id: Optional[str] = None
    # questionId -> answerId; re-answering overwrites
    answers: dict[str, str] = Field(default_factory=dict)
    # Question ids presented so far, in order; the last entry is current
    history: list[str] = Field(default_factory=list)
    lead: Optional[LeadData] = None
    session_id: Optional[str] = None
    result_url: Optional[str] = None
    bucket_key: Optional[str] = None
    # Last user-visible error; cleared on the next successful transition
    error: Optional[str] = None


class AnswerOption(BaseModel):
    id: str
    answer_text: str


class QuestionPayload(BaseModel):
    """Flattened question for rendering: routing payloads are stripped."""

    id: str
    question_text: str
    description: Optional[str] = None
    answers: list[AnswerOption]


class Progress(BaseModel):
    """Position within the run.  ``total`` depends on the scoring strategy."""

    current: int
    total: int
    percent: float


class LeadCaptureStep(BaseModel):
    type: Literal["lead_capture"] = "lead_capture"
    phase: FlowPhase
    error: Optional[str] = None


class QuestionStep(BaseModel):
    type: Literal["question"] = "question"
    phase: FlowPhase = FlowPhase.QUESTIONS
    question: QuestionPayload
    progress: Progress
    # True when the previous question can be revisited via step_back()
    can_go_back: bool = False
    error: Optional[str] = None


class CompletionStep(BaseModel):
    """Run finished.  ``bucket_key`` is set when a routing edge chose the bucket."""

    type: Literal["complete"] = "complete"
    phase: FlowPhase = FlowPhase.COMPLETE
    session_id: str
    result_url: str
    bucket_key: Optional[str] = None


class UnavailableStep(BaseModel):
    type: Literal["unavailable"] = "unavailable"
    reason: str


FlowStep = Annotated[
    Union[LeadCaptureStep, QuestionStep, CompletionStep, UnavailableStep],
    Field(discriminator="type"),
]
