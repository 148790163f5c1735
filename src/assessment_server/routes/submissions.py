"""Submission endpoints — submit answers, capture a lead, look up a result.

POST_GATED assessments return no ``resultUrl`` on submit; the result becomes
available once the lead is captured for that session.
"""

from fastapi import APIRouter, Depends

from assessment_engine.models.service import CaptureLeadRequest, SubmitRequest
from assessment_engine.service import LocalAssessmentService

from assessment_server.dependencies import get_service

router = APIRouter(prefix="/configurable-assessments", tags=["submissions"])


@router.post("/{config_id}/submit", status_code=201)
async def submit_assessment(
    config_id: str,
    body: SubmitRequest,
    service: LocalAssessmentService = Depends(get_service),
) -> dict:
    """Score and store a run.  Returns ``{sessionId, resultUrl?}``.

    Raises 404 for an unknown assessment and 400 for an empty submission.
    """
    resp = await service.submit(config_id, body)
    return resp.to_wire()


@router.put("/sessions/{session_id}/capture-lead")
async def capture_lead(
    session_id: str,
    body: CaptureLeadRequest,
    service: LocalAssessmentService = Depends(get_service),
) -> dict:
    """Attach lead details to a submitted session.  Returns ``{resultUrl}``."""
    resp = await service.capture_lead(session_id, body)
    return resp.to_wire()


@router.get("/sessions/{session_id}/result")
def get_result(
    session_id: str,
    service: LocalAssessmentService = Depends(get_service),
) -> dict:
    """Return the session's bucket.

    404 when the session is unknown, or when it is POST_GATED and no lead
    has been captured yet.
    """
    record, bucket = service.get_result(session_id)
    return {
        "sessionId": record.session_id,
        "configId": record.config_id,
        "bucketKey": record.bucket_key,
        "bucket": bucket.to_wire() if bucket else None,
    }
