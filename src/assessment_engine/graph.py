"""QuestionGraph — read-only projection over one assessment's records.

Built once per run from the fetched config, questions, answers and
(optionally) result buckets.  Provides deterministic ordering and id lookup;
it never mutates the records it wraps.

Usage::

    graph = QuestionGraph(config, questions, answers)
    graph.ensure_runnable()
    for q in graph.sorted_questions():
        options = graph.answers_for(q.id)
"""

from __future__ import annotations

import logging
from typing import Iterable

from assessment_engine.errors import AssessmentUnavailableError
from assessment_engine.models.graph import Answer, AssessmentConfig, Question, ResultBucket

logger = logging.getLogger(__name__)


class QuestionGraph:
    """Questions, answers and buckets of a single assessment.

    Args:
        config: the assessment config
        questions: all questions of the assessment, in any order
        answers: all answers of the assessment, in any order
        buckets: result buckets (only needed for server-side scoring)
    """

    def __init__(
        self,
        config: AssessmentConfig,
        questions: Iterable[Question],
        answers: Iterable[Answer],
        buckets: Iterable[ResultBucket] = (),
    ) -> None:
        self.config = config

        # Ties on order are broken by id so the sequence never depends on
        # the order the data service happened to return.
        self._sorted = sorted(questions, key=lambda q: (q.order, q.id))
        self._questions = {q.id: q for q in self._sorted}
        self._index = {q.id: i for i, q in enumerate(self._sorted)}

        self._answers: dict[str, Answer] = {}
        self._by_question: dict[str, list[Answer]] = {}
        for a in answers:
            self._answers[a.id] = a
            self._by_question.setdefault(a.question_id, []).append(a)
        for group in self._by_question.values():
            group.sort(key=lambda a: (a.order, a.id))

        self.buckets = sorted(buckets, key=lambda b: (b.order, b.bucket_key))

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def sorted_questions(self) -> list[Question]:
        """All questions by ``order`` ascending, ties broken by id."""
        return list(self._sorted)

    def answers_for(self, question_id: str) -> list[Answer]:
        """Answers for a question by ``order`` ascending (empty if none)."""
        return list(self._by_question.get(question_id, []))

    def position(self, question_id: str) -> int | None:
        """Index of a question in :meth:`sorted_questions`, or None."""
        return self._index.get(question_id)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_question(self, question_id: str) -> Question | None:
        return self._questions.get(question_id)

    def get_answer(self, answer_id: str) -> Answer | None:
        return self._answers.get(answer_id)

    def get_bucket(self, bucket_key: str) -> ResultBucket | None:
        for bucket in self.buckets:
            if bucket.bucket_key == bucket_key:
                return bucket
        return None

    def all_answers(self) -> list[Answer]:
        return list(self._answers.values())

    @property
    def entry_question_id(self) -> str | None:
        """The configured entry question, or the first sorted question.

        A configured entry id that names no question is ignored.
        """
        entry = self.config.entry_question_id
        if entry:
            if entry in self._questions:
                return entry
            logger.warning(
                "Assessment %s: entryQuestionId %s not found, using first question",
                self.config.id, entry,
            )
        return self._sorted[0].id if self._sorted else None

    # ------------------------------------------------------------------
    # Runnability
    # ------------------------------------------------------------------

    @property
    def is_runnable(self) -> bool:
        return bool(self._sorted)

    def ensure_runnable(self) -> None:
        """Raise if the assessment has no questions.

        Raises:
            AssessmentUnavailableError: the caller must not enter the
                question phase.
        """
        if not self.is_runnable:
            raise AssessmentUnavailableError(
                f"Assessment {self.config.slug!r} has no questions"
            )

    def __len__(self) -> int:
        return len(self._sorted)
