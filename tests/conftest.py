"""Shared fixtures and graph builders.

Graphs are built in memory from small helper constructors so each test
states exactly the questions, answers and routing edges it depends on.
``FakeService`` is an in-memory AssessmentDataService whose submit and
capture-lead calls can be made to fail a given number of times.
"""

import json
from pathlib import Path

import pytest

from assessment_engine.errors import ServiceError
from assessment_engine.graph import QuestionGraph
from assessment_engine.interfaces import AssessmentDataService
from assessment_engine.models.graph import Answer, AssessmentConfig, Question, ResultBucket
from assessment_engine.models.service import (
    CaptureLeadRequest,
    CaptureLeadResponse,
    SubmitRequest,
    SubmitResponse,
)
from assessment_engine.store import AssessmentStore

REPO_ROOT = Path(__file__).resolve().parent.parent
ASSESSMENT_DIR = REPO_ROOT / "assessments"


# =====================================================================
# Builders
# =====================================================================


def make_config(**overrides) -> AssessmentConfig:
    data = {"id": "cfg-1", "slug": "test-assessment", "title": "Test"}
    data.update(overrides)
    return AssessmentConfig(**data)


def make_question(qid: str, order: int, *, condition: tuple[str, str] | None = None) -> Question:
    logic = None
    if condition is not None:
        logic = json.dumps({"questionId": condition[0], "answerId": condition[1]})
    return Question(id=qid, order=order, question_text=f"Question {qid}", conditional_logic=logic)


def make_answer(
    aid: str,
    qid: str,
    order: int = 0,
    *,
    next_question: str | None = None,
    bucket: str | None = None,
    value: str | None = None,
    points: int | None = None,
) -> Answer:
    """Build an answer; ``value`` overrides the encoded routing payload verbatim."""
    if value is None:
        payload = {}
        if next_question:
            payload["nextQuestionId"] = next_question
        if bucket:
            payload["resultBucketKey"] = bucket
        value = json.dumps(payload) if payload else ""
    return Answer(
        id=aid, question_id=qid, order=order,
        answer_text=f"Answer {aid}", answer_value=value, points=points,
    )


def make_graph(questions, answers, buckets=(), **config) -> QuestionGraph:
    return QuestionGraph(make_config(**config), questions, answers, buckets)


# =====================================================================
# Fake data service
# =====================================================================


class FakeService(AssessmentDataService):
    """In-memory data service for flow tests.

    Records every submit / capture-lead request.  ``fail_submits`` and
    ``fail_captures`` make the next N calls raise ``ServiceError``.
    """

    def __init__(self, graph: QuestionGraph | None = None, *, result_url: str | None = "/results/s-1"):
        self.graph = graph
        self.result_url = result_url
        self.submits: list[tuple[str, SubmitRequest]] = []
        self.captures: list[tuple[str, CaptureLeadRequest]] = []
        self.fail_submits = 0
        self.fail_captures = 0
        self.fail_fetch = False

    async def fetch_config(self, slug):
        if self.fail_fetch:
            raise ServiceError("connection refused")
        if self.graph is None or self.graph.config.slug != slug:
            return None
        return self.graph.config

    async def fetch_questions(self, config_id):
        return self.graph.sorted_questions()

    async def fetch_answers(self, config_id):
        return self.graph.all_answers()

    async def submit(self, config_id, request):
        if self.fail_submits:
            self.fail_submits -= 1
            raise ServiceError("submit failed", status_code=500)
        self.submits.append((config_id, request))
        return SubmitResponse(session_id=f"s-{len(self.submits)}", result_url=self.result_url)

    async def capture_lead(self, session_id, request):
        if self.fail_captures:
            self.fail_captures -= 1
            raise ServiceError("capture failed", status_code=503)
        self.captures.append((session_id, request))
        return CaptureLeadResponse(result_url=f"/results/{session_id}")


# =====================================================================
# Example graphs
# =====================================================================


@pytest.fixture
def early_exit_graph():
    """Q1: A1 → Q2, A2 → bucket fast-track.  Q2 (shown if Q1=A1): B1 → standard."""
    return make_graph(
        [make_question("Q1", 1), make_question("Q2", 2, condition=("Q1", "A1"))],
        [
            make_answer("A1", "Q1", 1, next_question="Q2"),
            make_answer("A2", "Q1", 2, bucket="fast-track"),
            make_answer("B1", "Q2", 1, bucket="standard"),
        ],
    )


@pytest.fixture
def skip_graph():
    """Q1: A1 → Q3 explicitly, skipping Q2 even though Q2 is unlocked by Q1=A1."""
    return make_graph(
        [
            make_question("Q1", 1),
            make_question("Q2", 2, condition=("Q1", "A1")),
            make_question("Q3", 3),
        ],
        [
            make_answer("A1", "Q1", 1, next_question="Q3"),
            make_answer("A2", "Q1", 2),
            make_answer("B1", "Q2", 1),
            make_answer("C1", "Q3", 1),
        ],
    )


@pytest.fixture
def linear_graph():
    """Three unconditional questions, no routing payloads."""
    return make_graph(
        [make_question("Q1", 1), make_question("Q2", 2), make_question("Q3", 3)],
        [
            make_answer("A1", "Q1", 1),
            make_answer("A2", "Q1", 2),
            make_answer("B1", "Q2", 1),
            make_answer("C1", "Q3", 1),
        ],
    )


@pytest.fixture
def points_graph():
    """Points-scored graph with a conditional follow-up and three score ranges."""
    return make_graph(
        [
            make_question("Q1", 1),
            make_question("Q2", 2, condition=("Q1", "A1")),
            make_question("Q3", 3),
        ],
        [
            make_answer("A1", "Q1", 1, points=3),
            make_answer("A2", "Q1", 2, points=0),
            make_answer("B1", "Q2", 1, points=2),
            make_answer("C1", "Q3", 1, points=1),
            make_answer("C2", "Q3", 2, points=5),
        ],
        [
            ResultBucket(bucket_key="low", max_score=2, order=1),
            ResultBucket(bucket_key="mid", min_score=3, max_score=6, order=2),
            ResultBucket(bucket_key="high", min_score=7, order=3),
        ],
        scoring_method="points",
    )


@pytest.fixture(scope="session")
def repo_store():
    """The AssessmentStore over the repo's assessments/ directory."""
    store = AssessmentStore(ASSESSMENT_DIR)
    store.load()
    return store
