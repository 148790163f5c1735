"""assessment_engine — Configurable assessment runtime SDK.

Public API:
    AssessmentFlow        — state machine driving one run (lead gates, questions, submission)
    QuestionGraph         — read-only view over an assessment's questions/answers/buckets
    VisibilityEvaluator   — conditional question visibility
    RoutingResolver       — next-step resolution with sequential fallback
    AssessmentStore       — loads YAML assessment definitions
    FlowStep              — union type returned by flow methods

Data service:
    AssessmentDataService — ABC for fetching content and submitting runs
    HttpAssessmentService — HTTP client implementation (httpx)
    LocalAssessmentService — in-process implementation over an AssessmentStore

Scoring:
    DecisionTreeScoring / PointsScoring — runtime strategies
    calculate_points_bucket / calculate_decision_tree_bucket — server-side bucket assignment

Analysis:
    analyze_graph         — reachability, orphans, cycles, dangling routes
"""

from assessment_engine.analysis import GraphAnalysis, analyze_graph
from assessment_engine.client import HttpAssessmentService
from assessment_engine.engine import AssessmentFlow
from assessment_engine.errors import AssessmentUnavailableError, FlowBusyError, ServiceError
from assessment_engine.evaluator import VisibilityEvaluator
from assessment_engine.graph import QuestionGraph
from assessment_engine.interfaces import AssessmentDataService
from assessment_engine.models.session import (
    CompletionStep,
    FlowPhase,
    FlowStep,
    LeadCaptureStep,
    QuestionStep,
    SessionState,
    UnavailableStep,
)
from assessment_engine.router import RoutingResolver
from assessment_engine.scoring import (
    DecisionTreeScoring,
    PointsScoring,
    calculate_decision_tree_bucket,
    calculate_points_bucket,
    strategy_for,
)
from assessment_engine.service import LocalAssessmentService
from assessment_engine.store import AssessmentStore

__all__ = [
    # Flow & graph
    "AssessmentFlow",
    "QuestionGraph",
    "VisibilityEvaluator",
    "RoutingResolver",
    "AssessmentStore",
    # Steps / state
    "CompletionStep",
    "FlowPhase",
    "FlowStep",
    "LeadCaptureStep",
    "QuestionStep",
    "SessionState",
    "UnavailableStep",
    # Data service
    "AssessmentDataService",
    "HttpAssessmentService",
    "LocalAssessmentService",
    # Scoring
    "DecisionTreeScoring",
    "PointsScoring",
    "calculate_decision_tree_bucket",
    "calculate_points_bucket",
    "strategy_for",
    # Analysis
    "GraphAnalysis",
    "analyze_graph",
    # Errors
    "AssessmentUnavailableError",
    "FlowBusyError",
    "ServiceError",
]
