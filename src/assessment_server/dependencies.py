"""FastAPI dependency injection — provides the store and data service.

Both are built once in the lifespan handler and stashed on ``app.state``.
"""

from fastapi import Request

from assessment_engine.service import LocalAssessmentService
from assessment_engine.store import AssessmentStore


def get_service(request: Request) -> LocalAssessmentService:
    """Return the data service singleton from ``app.state``."""
    return request.app.state.service


def get_store(request: Request) -> AssessmentStore:
    """Return the AssessmentStore singleton from ``app.state``."""
    return request.app.state.store
