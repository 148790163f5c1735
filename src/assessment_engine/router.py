"""RoutingResolver — decides where the run goes after an answer is selected.

Resolution order:

  1. The answer's payload names a ``resultBucketKey`` → terminate with that
     bucket.  This wins over everything else, whatever the scoring method.
  2. The payload names a ``nextQuestionId`` that exists, is visible, and has
     not been answered in this run → go there.
  3. Otherwise (no payload, undecodable payload, dangling/hidden/already
     answered target) → sequential scan: the first visible, unanswered
     question after the current one in sorted order.
  4. Scan exhausted → no route; the run is complete.

The sequential fallback lets explicit edges and conditional visibility
coexist: a broken or inapplicable edge falls through to the next question
that should show.  Because a route never lands on an answered question,
every step visits a new question and a run ends within N steps even if
explicit edges form a cycle.
"""

from __future__ import annotations

import logging
from typing import Mapping

from pydantic import ValidationError

from assessment_engine.evaluator import VisibilityEvaluator, decode_json_object
from assessment_engine.graph import QuestionGraph
from assessment_engine.models.routing import (
    BucketRoute,
    NoRoute,
    QuestionRoute,
    Route,
    RoutingPayload,
)

logger = logging.getLogger(__name__)


def decode_routing_payload(raw) -> RoutingPayload | None:
    """Decode an answer's ``answerValue``; None when it carries no routing.

    Empty strings for either key count as absent.
    """
    data = decode_json_object(raw)
    if data is None:
        return None
    try:
        payload = RoutingPayload.model_validate(data)
    except ValidationError:
        logger.debug("Ignoring malformed answerValue: %r", raw)
        return None
    if not payload.result_bucket_key and not payload.next_question_id:
        return None
    return payload


class RoutingResolver:
    """Resolves the next step of a run from the selected answer.

    Args:
        evaluator: visibility evaluator used to probe candidate questions
    """

    def __init__(self, evaluator: VisibilityEvaluator | None = None) -> None:
        self._evaluator = evaluator or VisibilityEvaluator()

    def resolve_next(
        self,
        current_question_id: str,
        selected_answer_id: str,
        answers: Mapping[str, str],
        graph: QuestionGraph,
    ) -> Route:
        """Return the route taken after ``selected_answer_id`` is chosen.

        Args:
            current_question_id: the question just answered
            selected_answer_id: the answer chosen for it
            answers: questionId -> answerId for this run, already including
                the selection being resolved
            graph: the assessment's question graph

        Returns:
            QuestionRoute, BucketRoute, or NoRoute.
        """
        answer = graph.get_answer(selected_answer_id)
        payload = decode_routing_payload(answer.answer_value) if answer else None
        if answer is None:
            logger.warning("Answer %s not found, using sequential routing", selected_answer_id)

        if payload is not None:
            if payload.result_bucket_key:
                return BucketRoute(key=payload.result_bucket_key)

            target_id = payload.next_question_id
            target = graph.get_question(target_id)
            if target is None:
                logger.warning(
                    "Answer %s routes to unknown question %s, using sequential routing",
                    selected_answer_id, target_id,
                )
            elif target_id in answers:
                logger.info(
                    "Answer %s routes to already answered question %s, using sequential routing",
                    selected_answer_id, target_id,
                )
            elif self._evaluator.is_visible(target, answers):
                return QuestionRoute(id=target_id, source="explicit")
            else:
                logger.debug(
                    "Answer %s routes to hidden question %s, using sequential routing",
                    selected_answer_id, target_id,
                )

        next_id = self.next_sequential(current_question_id, answers, graph)
        if next_id is None:
            return NoRoute()
        return QuestionRoute(id=next_id, source="sequential")

    def next_sequential(
        self,
        current_question_id: str | None,
        answers: Mapping[str, str],
        graph: QuestionGraph,
    ) -> str | None:
        """First visible, unanswered question after the current one in sorted order.

        If the current question is not part of the graph, the scan starts
        from the first question.
        """
        questions = graph.sorted_questions()
        pos = graph.position(current_question_id) if current_question_id else None
        start = pos + 1 if pos is not None else 0

        for question in questions[start:]:
            if question.id in answers:
                continue
            if self._evaluator.is_visible(question, answers):
                return question.id
        return None
