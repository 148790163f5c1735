"""Public model re-exports for assessment_engine.

Consumers should import from ``assessment_engine.models`` rather than
reaching into sub-modules directly.
"""

# --- Graph ---
from assessment_engine.models.graph import (
    Answer,
    AssessmentConfig,
    GateBehavior,
    Question,
    ResultBucket,
    ScoringMethod,
    WireModel,
)

# --- Routing ---
from assessment_engine.models.routing import (
    BucketRoute,
    ConditionalLogic,
    NoRoute,
    QuestionRoute,
    Route,
    RoutingPayload,
)

# --- Service boundary ---
from assessment_engine.models.service import (
    CaptureLeadRequest,
    CaptureLeadResponse,
    LeadData,
    SubmitRequest,
    SubmitResponse,
    SubmittedAnswer,
)

# --- Session / step ---
from assessment_engine.models.session import (
    AnswerOption,
    CompletionStep,
    FlowPhase,
    FlowStep,
    LeadCaptureStep,
    Progress,
    QuestionPayload,
    QuestionStep,
    SessionState,
    UnavailableStep,
)

__all__ = [
    # Graph
    "Answer",
    "AssessmentConfig",
    "GateBehavior",
    "Question",
    "ResultBucket",
    "ScoringMethod",
    "WireModel",
    # Routing
    "BucketRoute",
    "ConditionalLogic",
    "NoRoute",
    "QuestionRoute",
    "Route",
    "RoutingPayload",
    # Service
    "CaptureLeadRequest",
    "CaptureLeadResponse",
    "LeadData",
    "SubmitRequest",
    "SubmitResponse",
    "SubmittedAnswer",
    # Session
    "AnswerOption",
    "CompletionStep",
    "FlowPhase",
    "FlowStep",
    "LeadCaptureStep",
    "Progress",
    "QuestionPayload",
    "QuestionStep",
    "SessionState",
    "UnavailableStep",
]
