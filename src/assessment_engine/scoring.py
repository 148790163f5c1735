"""Scoring strategies and server-side bucket calculation.

Runtime strategies (used by the flow controller):

  - DecisionTreeScoring: progress counts every question (branch-skipped
    questions are unknown in advance); the bucket is whatever routing edge
    ends the run.
  - PointsScoring: progress counts the currently visible questions; the
    bucket is assigned by the data service from the summed answer points.

Server-side calculators (used by the data service when a run is submitted):

  - calculate_points_bucket: sum answer points, pick the first bucket (by
    order) whose score range contains the total
  - calculate_decision_tree_bucket: replay the submitted answers through
    the routing resolver and return the bucket the walk ends in
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Mapping

from assessment_engine.evaluator import VisibilityEvaluator
from assessment_engine.graph import QuestionGraph
from assessment_engine.models.graph import Answer, ResultBucket, ScoringMethod
from assessment_engine.models.routing import BucketRoute, Route
from assessment_engine.models.service import SubmittedAnswer
from assessment_engine.models.session import Progress
from assessment_engine.router import RoutingResolver

logger = logging.getLogger(__name__)


class ScoringStrategy(ABC):
    """How progress is counted and where the final bucket comes from."""

    method: ScoringMethod

    def __init__(self, evaluator: VisibilityEvaluator | None = None) -> None:
        self._evaluator = evaluator or VisibilityEvaluator()

    @abstractmethod
    def total_questions(self, graph: QuestionGraph, answers: Mapping[str, str]) -> int:
        """Denominator for progress display."""
        ...

    @abstractmethod
    def local_bucket(self, route: Route) -> str | None:
        """Bucket key decided on the client when the run ends via ``route``."""
        ...

    def progress(
        self,
        graph: QuestionGraph,
        answers: Mapping[str, str],
        current_question_id: str | None,
    ) -> Progress:
        """Position of the current question among the visible questions.

        ``current`` is 0 when the current question is not itself visible
        (e.g. a conditional entry question).
        """
        visible = self._evaluator.visible_questions(graph.sorted_questions(), answers)
        visible_ids = [q.id for q in visible]
        current = visible_ids.index(current_question_id) + 1 if current_question_id in visible_ids else 0
        total = self.total_questions(graph, answers)
        percent = round(current / total * 100, 2) if total > 0 else 0.0
        return Progress(current=current, total=total, percent=percent)


class DecisionTreeScoring(ScoringStrategy):
    method = ScoringMethod.DECISION_TREE

    def total_questions(self, graph: QuestionGraph, answers: Mapping[str, str]) -> int:
        return len(graph.sorted_questions())

    def local_bucket(self, route: Route) -> str | None:
        # The routing edge is authoritative under decision-tree scoring
        if isinstance(route, BucketRoute):
            return route.key
        return None


class PointsScoring(ScoringStrategy):
    method = ScoringMethod.POINTS

    def total_questions(self, graph: QuestionGraph, answers: Mapping[str, str]) -> int:
        return len(self._evaluator.visible_questions(graph.sorted_questions(), answers))

    def local_bucket(self, route: Route) -> str | None:
        # A bucket edge still ends the run early, but the score decides the bucket
        return None


def strategy_for(
    method: ScoringMethod | str, evaluator: VisibilityEvaluator | None = None
) -> ScoringStrategy:
    """Return the strategy for a scoring method."""
    method = ScoringMethod(method)
    if method == ScoringMethod.POINTS:
        return PointsScoring(evaluator)
    return DecisionTreeScoring(evaluator)


# ----------------------------------------------------------------------
# Server-side bucket calculation
# ----------------------------------------------------------------------

def _in_range(score: int, bucket: ResultBucket) -> bool:
    lo, hi = bucket.min_score, bucket.max_score
    if lo is not None and hi is not None:
        return lo <= score <= hi
    if lo is not None:
        return score >= lo
    if hi is not None:
        return score <= hi
    # A bucket without any bounds never matches a score
    return False


def total_points(answers: Iterable[SubmittedAnswer], all_answers: Iterable[Answer]) -> int:
    """Sum the points of the submitted answers.  Unknown answers and null points count as 0."""
    points_by_id = {a.id: a.points for a in all_answers}
    total = 0
    for submitted in answers:
        points = points_by_id.get(submitted.answer_id)
        if points is not None:
            total += points
    return total


def calculate_points_bucket(
    answers: Iterable[SubmittedAnswer],
    all_answers: Iterable[Answer],
    buckets: Iterable[ResultBucket],
) -> str | None:
    """Map the summed answer points to a bucket key.

    Buckets are checked in ``order``; the first whose range contains the
    score wins, so overlapping ranges resolve deterministically.

    Returns:
        The matching bucket key, or None if no bucket matched.
    """
    score = total_points(answers, all_answers)
    logger.info("Points-based scoring: total points %d", score)

    for bucket in sorted(buckets, key=lambda b: (b.order, b.bucket_key)):
        if _in_range(score, bucket):
            logger.info("Points-based scoring: matched bucket %s", bucket.bucket_key)
            return bucket.bucket_key

    logger.warning("Points-based scoring: no bucket matched score %d", score)
    return None


def calculate_decision_tree_bucket(
    answers: Iterable[SubmittedAnswer],
    graph: QuestionGraph,
    resolver: RoutingResolver | None = None,
) -> str | None:
    """Replay submitted answers from the entry question and return the bucket reached.

    The replay uses the same resolver as the runtime, feeding it only the
    answers given up to each step, so the server reaches the same bucket the
    client did.

    Returns:
        The bucket key, or None when the walk hits an unanswered question or
        runs out of questions without reaching a bucket.
    """
    resolver = resolver or RoutingResolver()
    submitted = {a.question_id: a.answer_id for a in answers}
    replayed: dict[str, str] = {}

    current = graph.entry_question_id
    # Each step answers a new question, so the walk is bounded by the graph size
    for _ in range(len(graph) + 1):
        if current is None:
            break
        answer_id = submitted.get(current)
        if answer_id is None:
            logger.warning("Decision-tree scoring: no answer submitted for question %s", current)
            return None
        replayed[current] = answer_id

        route = resolver.resolve_next(current, answer_id, replayed, graph)
        if isinstance(route, BucketRoute):
            logger.info("Decision-tree scoring: reached bucket %s", route.key)
            return route.key
        if route.kind == "none":
            break
        current = route.id

    logger.warning("Decision-tree scoring: walk ended without a result bucket")
    return None
