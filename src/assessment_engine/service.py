"""LocalAssessmentService — in-process data service backed by an AssessmentStore.

Serves assessment content straight from the store and handles submissions
the way the remote data service does:

  - decision-tree assessments: replay the answers to find the bucket
  - points assessments: sum answer points into a bucket's score range
  - POST_GATED assessments: withhold the result URL until a lead is captured

Submissions live in memory, for the lifetime of the service or until they
outlive the optional submission TTL.  The reference
HTTP server wraps this class; the simulation script and the tests use it
directly.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from assessment_engine.constants import RESULT_URL_TEMPLATE
from assessment_engine.errors import ServiceError
from assessment_engine.interfaces import AssessmentDataService
from assessment_engine.models.graph import (
    Answer,
    AssessmentConfig,
    GateBehavior,
    Question,
    ResultBucket,
    ScoringMethod,
)
from assessment_engine.models.service import (
    CaptureLeadRequest,
    CaptureLeadResponse,
    SubmitRequest,
    SubmitResponse,
    SubmittedAnswer,
)
from assessment_engine.scoring import calculate_decision_tree_bucket, calculate_points_bucket
from assessment_engine.store import AssessmentDefinition, AssessmentStore

logger = logging.getLogger(__name__)


@dataclass
class SubmissionRecord:
    """One submitted run, as held by the data service."""

    session_id: str
    config_id: str
    answers: list[SubmittedAnswer]
    bucket_key: Optional[str]
    email: Optional[str] = None
    name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    lead_captured_at: Optional[datetime] = None

    @property
    def has_lead(self) -> bool:
        return bool(self.email)

    @property
    def result_url(self) -> str:
        return RESULT_URL_TEMPLATE.format(session_id=self.session_id)


class LocalAssessmentService(AssessmentDataService):
    """In-memory :class:`AssessmentDataService` over a loaded store.

    Args:
        store: a loaded :class:`AssessmentStore`
        include_unpublished: serve configs with ``published: false`` too
            (admin preview); by default they are reported as not found
        submission_ttl: how long submissions are kept; ``None`` keeps them
            for the lifetime of the service
    """

    def __init__(
        self,
        store: AssessmentStore,
        *,
        include_unpublished: bool = False,
        submission_ttl: Optional[timedelta] = None,
    ) -> None:
        self._store = store
        self._include_unpublished = include_unpublished
        self._submission_ttl = submission_ttl
        self.submissions: dict[str, SubmissionRecord] = {}

    def _definition(self, config_id: str) -> AssessmentDefinition:
        try:
            return self._store.get(config_id)
        except KeyError:
            raise ServiceError(f"Assessment not found: config_id={config_id}", status_code=404) from None

    def _record(self, session_id: str) -> SubmissionRecord:
        record = self.submissions.get(session_id)
        if record is None:
            raise ServiceError(f"Session not found: session_id={session_id}", status_code=404)
        return record

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def fetch_config(self, slug: str) -> AssessmentConfig | None:
        definition = self._store.get_by_slug(slug)
        if definition is None:
            return None
        if not definition.config.published and not self._include_unpublished:
            return None
        return definition.config

    async def fetch_questions(self, config_id: str) -> list[Question]:
        return list(self._definition(config_id).questions)

    async def fetch_answers(self, config_id: str) -> list[Answer]:
        return list(self._definition(config_id).answers)

    async def fetch_buckets(self, config_id: str) -> list[ResultBucket]:
        return list(self._definition(config_id).buckets)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, config_id: str, request: SubmitRequest) -> SubmitResponse:
        """Score the run, store it, and return its session id.

        Raises:
            ServiceError: 404 if ``config_id`` names no assessment, 400 if
                the submission has no answers.
        """
        self.purge_expired()
        definition = self._definition(config_id)
        if not request.answers:
            raise ServiceError("Submission must contain at least one answer", status_code=400)

        graph = definition.to_graph()
        if definition.config.scoring_method == ScoringMethod.POINTS:
            bucket_key = calculate_points_bucket(request.answers, graph.all_answers(), graph.buckets)
        else:
            bucket_key = calculate_decision_tree_bucket(request.answers, graph)

        record = SubmissionRecord(
            session_id=str(uuid.uuid4()),
            config_id=config_id,
            answers=list(request.answers),
            bucket_key=bucket_key,
            email=request.email,
            name=request.name,
            company=request.company,
            phone=request.phone,
        )
        self.submissions[record.session_id] = record
        logger.info(
            "Submission %s for %s: %d answers, bucket=%s",
            record.session_id, config_id, len(record.answers), bucket_key,
        )

        if definition.config.gate_behavior == GateBehavior.POST_GATED:
            return SubmitResponse(session_id=record.session_id)
        return SubmitResponse(session_id=record.session_id, result_url=record.result_url)

    async def capture_lead(
        self, session_id: str, request: CaptureLeadRequest
    ) -> CaptureLeadResponse:
        """Attach lead details to a submission.

        Raises:
            ServiceError: 404 if the session is not found.
        """
        record = self._record(session_id)

        record.email = request.email
        record.name = request.name
        record.company = request.company
        record.lead_captured_at = datetime.now(timezone.utc)
        logger.info("Lead captured for submission %s", session_id)
        return CaptureLeadResponse(result_url=record.result_url)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop submissions older than the configured TTL.

        Returns the number of submissions removed.  A no-op when no TTL is
        set.
        """
        if self._submission_ttl is None:
            return 0
        cutoff = (now or datetime.now(timezone.utc)) - self._submission_ttl
        expired = [sid for sid, record in self.submissions.items() if record.created_at < cutoff]
        for sid in expired:
            del self.submissions[sid]
        if expired:
            logger.info("Purged %d submission(s) older than %s", len(expired), self._submission_ttl)
        return len(expired)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def get_result(self, session_id: str) -> tuple[SubmissionRecord, ResultBucket | None]:
        """Return a submission and its bucket, once the result may be shown.

        POST_GATED results stay hidden until the lead is captured.

        Raises:
            ServiceError: 404 if the session is not found or its result is
                still gated.
        """
        record = self._record(session_id)
        definition = self._definition(record.config_id)
        if definition.config.gate_behavior == GateBehavior.POST_GATED and not record.has_lead:
            raise ServiceError(
                f"Result not found: lead not captured for session_id={session_id}",
                status_code=404,
            )

        bucket = definition.to_graph().get_bucket(record.bucket_key) if record.bucket_key else None
        return record, bucket
