"""Abstract interface for the assessment data service.

The flow controller never talks to storage directly.  Assessment content is
fetched, and finished runs are submitted, through this contract.  Two
implementations ship with the SDK:

  - :class:`~assessment_engine.client.HttpAssessmentService` — talks to a
    remote data service over HTTP
  - :class:`~assessment_engine.service.LocalAssessmentService` — in-process,
    backed by YAML assessment files

Typical integration flow::

    service: AssessmentDataService = HttpAssessmentService(base_url)
    flow = AssessmentFlow(service, slug="gtm-assessment")
    step = await flow.load()
    # ... render step, feed user actions back into the flow ...
"""

from abc import ABC, abstractmethod

from assessment_engine.models.graph import Answer, AssessmentConfig, Question
from assessment_engine.models.service import (
    CaptureLeadRequest,
    CaptureLeadResponse,
    SubmitRequest,
    SubmitResponse,
)


class AssessmentDataService(ABC):
    """Request/response operations the flow controller depends on.

    Implementations raise :class:`~assessment_engine.errors.ServiceError`
    for transport or server failures.
    """

    @abstractmethod
    async def fetch_config(self, slug: str) -> AssessmentConfig | None:
        """Return the config for ``slug``, or None if it does not exist."""
        ...

    @abstractmethod
    async def fetch_questions(self, config_id: str) -> list[Question]:
        """Return every question of the assessment (any order)."""
        ...

    @abstractmethod
    async def fetch_answers(self, config_id: str) -> list[Answer]:
        """Return every answer of the assessment (any order)."""
        ...

    @abstractmethod
    async def submit(self, config_id: str, request: SubmitRequest) -> SubmitResponse:
        """Submit a finished run.

        Returns:
            SubmitResponse with the new session id.  ``result_url`` is
            omitted for POST_GATED assessments until a lead is captured.
        """
        ...

    @abstractmethod
    async def capture_lead(
        self, session_id: str, request: CaptureLeadRequest
    ) -> CaptureLeadResponse:
        """Attach lead details to a submitted session and return its result URL."""
        ...
