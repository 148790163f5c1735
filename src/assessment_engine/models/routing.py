"""Routing models: decoded answer payloads, conditions, and resolver decisions.

Decoded payloads (parsed from the encoded strings on Question/Answer):
  - RoutingPayload: ``{nextQuestionId}`` or ``{resultBucketKey}``
  - ConditionalLogic: ``{questionId, answerId}``

Resolver decisions (what happens after an answer is selected):
  - QuestionRoute: continue to another question
  - BucketRoute: terminate with a result bucket
  - NoRoute: no question left to show, the run is complete

The discriminated ``Route`` union uses ``kind`` as its discriminator.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RoutingPayload(BaseModel):
    """Decoded ``answerValue``.  Extra authoring keys (text, description) are ignored."""

    model_config = ConfigDict(extra="ignore")

    next_question_id: Optional[str] = Field(default=None, alias="nextQuestionId")
    result_bucket_key: Optional[str] = Field(default=None, alias="resultBucketKey")


class ConditionalLogic(BaseModel):
    """Decoded ``conditionalLogic``: show only if ``question_id`` was answered ``answer_id``."""

    model_config = ConfigDict(extra="ignore")

    question_id: str = Field(alias="questionId", min_length=1)
    answer_id: str = Field(alias="answerId", min_length=1)


class QuestionRoute(BaseModel):
    """Continue to question ``id``.

    ``source`` records how it was chosen: the answer's explicit edge, or the
    sequential scan used when no usable edge exists.
    """

    kind: Literal["question"] = "question"
    id: str
    source: Literal["explicit", "sequential"] = "sequential"


class BucketRoute(BaseModel):
    """Terminate the run with result bucket ``key``."""

    kind: Literal["bucket"] = "bucket"
    key: str


class NoRoute(BaseModel):
    """No visible question remains; the run is complete."""

    kind: Literal["none"] = "none"


# Callers can match on route.kind.
Route = Annotated[Union[QuestionRoute, BucketRoute, NoRoute], Field(discriminator="kind")]
