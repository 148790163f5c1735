"""VisibilityEvaluator — decides whether a conditional question is shown.

A question's ``conditionalLogic`` is an encoded ``{questionId, answerId}``
predicate.  The question is visible iff the referenced question was answered
with exactly that answer id.

Malformed conditions never hide a question: anything that fails to decode is
treated as "no condition".  The evaluator is pure, so the routing resolver
can call it speculatively while probing candidate next questions.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from assessment_engine.models.graph import Question
from assessment_engine.models.routing import ConditionalLogic

logger = logging.getLogger(__name__)


def decode_json_object(raw: Any) -> dict | None:
    """Decode an encoded payload into a dict, or None if it is not one.

    Accepts an already-decoded mapping as-is.  Plain strings, JSON scalars
    and JSON arrays all yield None.
    """
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return dict(raw)
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return decoded if isinstance(decoded, dict) else None


def decode_conditional_logic(raw: Any) -> ConditionalLogic | None:
    """Decode a question's ``conditionalLogic``; None when absent or malformed."""
    data = decode_json_object(raw)
    if data is None:
        if raw:
            logger.debug("Ignoring undecodable conditionalLogic: %r", raw)
        return None
    try:
        return ConditionalLogic.model_validate(data)
    except ValidationError:
        logger.debug("Ignoring incomplete conditionalLogic: %r", raw)
        return None


class VisibilityEvaluator:
    """Evaluates question visibility against the answers collected so far."""

    def is_visible(self, question: Question, answers: Mapping[str, str]) -> bool:
        """Return True if ``question`` should be shown.

        Args:
            question: the question to check
            answers: questionId -> selected answerId for this run

        Returns:
            True when the question has no (decodable) condition, or when the
            referenced question was answered with the referenced answer id.
        """
        condition = decode_conditional_logic(question.conditional_logic)
        if condition is None:
            return True
        return answers.get(condition.question_id) == condition.answer_id

    def visible_questions(
        self, questions: list[Question], answers: Mapping[str, str]
    ) -> list[Question]:
        """Filter ``questions`` down to the visible ones, preserving order."""
        return [q for q in questions if self.is_visible(q, answers)]
