"""HttpAssessmentService — data-service client over HTTP.

Speaks the REST paths of the assessment data service:

    GET  /api/assessment-configs/slug/{slug}
    GET  /api/assessment-configs/{id}/questions
    GET  /api/assessment-configs/{id}/answers
    POST /api/configurable-assessments/{id}/submit
    PUT  /api/configurable-assessments/sessions/{sessionId}/capture-lead

Transport failures and non-2xx responses are raised as ``ServiceError``.
A 404 on the config lookup is not an error; it means "no such assessment".

The client can own its ``httpx.AsyncClient`` or borrow one (e.g. an
``ASGITransport`` client in tests)::

    async with HttpAssessmentService("https://example.com") as service:
        flow = AssessmentFlow(service, slug="gtm-assessment")
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from assessment_engine.constants import DEFAULT_API_BASE_URL, DEFAULT_HTTP_TIMEOUT
from assessment_engine.errors import ServiceError
from assessment_engine.interfaces import AssessmentDataService
from assessment_engine.models.graph import Answer, AssessmentConfig, Question
from assessment_engine.models.service import (
    CaptureLeadRequest,
    CaptureLeadResponse,
    SubmitRequest,
    SubmitResponse,
)

logger = logging.getLogger(__name__)


class HttpAssessmentService(AssessmentDataService):
    """Async HTTP implementation of :class:`AssessmentDataService`.

    Args:
        base_url: root URL of the data service
        client: optional pre-configured ``httpx.AsyncClient``; when omitted
            the service creates (and closes) its own
        timeout: per-request timeout in seconds for an owned client
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpAssessmentService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ServiceError(f"{method} {path} failed: {exc}") from exc

        if resp.is_error:
            logger.warning("%s %s returned %d: %s", method, path, resp.status_code, resp.text)
            raise ServiceError(
                f"{method} {path} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        # A 2xx HTML fallback page (unknown API path behind a SPA) is not JSON
        try:
            return resp.json()
        except ValueError as exc:
            request = resp.request
            raise ServiceError(
                f"Malformed response from {request.method} {request.url.path}",
                status_code=resp.status_code,
            ) from exc

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ServiceError(f"Malformed {model.__name__} from data service: {exc}") from exc

    # ------------------------------------------------------------------
    # AssessmentDataService
    # ------------------------------------------------------------------

    async def fetch_config(self, slug: str) -> AssessmentConfig | None:
        try:
            resp = await self._request("GET", f"/api/assessment-configs/slug/{slug}")
        except ServiceError as exc:
            if exc.status_code == 404:
                return None
            raise
        return self._parse(AssessmentConfig, self._json(resp))

    async def fetch_questions(self, config_id: str) -> list[Question]:
        resp = await self._request("GET", f"/api/assessment-configs/{config_id}/questions")
        return [self._parse(Question, q) for q in self._json(resp)]

    async def fetch_answers(self, config_id: str) -> list[Answer]:
        resp = await self._request("GET", f"/api/assessment-configs/{config_id}/answers")
        return [self._parse(Answer, a) for a in self._json(resp)]

    async def submit(self, config_id: str, request: SubmitRequest) -> SubmitResponse:
        resp = await self._request(
            "POST",
            f"/api/configurable-assessments/{config_id}/submit",
            json=request.to_wire(),
        )
        return self._parse(SubmitResponse, self._json(resp))

    async def capture_lead(
        self, session_id: str, request: CaptureLeadRequest
    ) -> CaptureLeadResponse:
        resp = await self._request(
            "PUT",
            f"/api/configurable-assessments/sessions/{session_id}/capture-lead",
            json=request.to_wire(),
        )
        return self._parse(CaptureLeadResponse, self._json(resp))
