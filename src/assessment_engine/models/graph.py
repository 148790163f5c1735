"""Graph models for configurable assessments.

These models mirror the records served by the assessment data service:

  - AssessmentConfig: slug, scoring method, gate behavior, entry question
  - Question: ordered prompt, optionally conditional on a prior answer
  - Answer: selectable option carrying an encoded routing payload
  - ResultBucket: keyed terminal outcome, optionally score-ranged

Wire field names are camelCase (``questionText``, ``answerValue`` ...) and
must round-trip unchanged, so every model uses a camelCase alias generator.
Python code reads and writes the snake_case attribute names.
"""

from __future__ import annotations

import enum
import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models exchanged with the data service (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialise with camelCase keys, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ScoringMethod(str, enum.Enum):
    """How the final result bucket is determined.

    decision-tree: the routing edge that ends the run names the bucket
    points:        the data service sums answer points into a score range
    """

    DECISION_TREE = "decision-tree"
    POINTS = "points"


class GateBehavior(str, enum.Enum):
    """Where (if anywhere) the lead-capture form sits in the flow."""

    UNGATED = "UNGATED"
    PRE_GATED = "PRE_GATED"
    POST_GATED = "POST_GATED"


# Older configs were authored with these labels.
_SCORING_ALIASES = {
    "points-based": ScoringMethod.POINTS.value,
    "routing": ScoringMethod.DECISION_TREE.value,
}


def _encode_payload(value: Any) -> Any:
    """Encode a mapping as a JSON string; leave strings and None alone.

    YAML-authored assessments may write routing payloads and conditions as
    nested mappings; on the wire they are always encoded strings.
    """
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


class AssessmentConfig(WireModel):
    """Top-level assessment settings, fetched by public slug."""

    id: str
    slug: str
    title: str = ""
    description: Optional[str] = None
    scoring_method: ScoringMethod = ScoringMethod.DECISION_TREE
    gate_behavior: GateBehavior = GateBehavior.UNGATED
    entry_question_id: Optional[str] = None
    published: bool = True

    @field_validator("scoring_method", mode="before")
    @classmethod
    def _normalise_scoring(cls, v):
        if isinstance(v, str):
            return _SCORING_ALIASES.get(v, v)
        return v


class Question(WireModel):
    """A single prompt in the assessment.

    ``conditional_logic`` is an encoded ``{questionId, answerId}`` predicate;
    ``None`` means the question is always visible.
    """

    id: str
    order: int = 0
    question_text: str
    description: Optional[str] = None
    conditional_logic: Optional[str] = None

    @field_validator("conditional_logic", mode="before")
    @classmethod
    def _encode_condition(cls, v):
        return _encode_payload(v)


class Answer(WireModel):
    """A selectable option for one question.

    ``answer_value`` is an opaque encoded routing payload, either
    ``{"nextQuestionId": ...}`` or ``{"resultBucketKey": ...}``.  Anything
    else means "no explicit routing".
    """

    id: str
    question_id: str
    order: int = 0
    answer_text: str
    answer_value: str = ""
    points: Optional[int] = None

    @field_validator("answer_value", mode="before")
    @classmethod
    def _encode_value(cls, v):
        if v is None:
            return ""
        return _encode_payload(v)


class ResultBucket(WireModel):
    """A terminal outcome, addressed by ``bucket_key``.

    ``min_score``/``max_score`` only matter under points-based scoring.
    """

    bucket_key: str
    bucket_name: str = ""
    title: str = ""
    content: str = ""
    min_score: Optional[int] = None
    max_score: Optional[int] = None
    order: int = 0
