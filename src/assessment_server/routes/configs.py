"""Assessment content endpoints — config by slug, questions, answers, buckets.

Read-only; everything is served from the loaded ``AssessmentStore``.  Wire
payloads use camelCase field names.
"""

from fastapi import APIRouter, Depends

from assessment_engine.analysis import analyze_graph
from assessment_engine.errors import ServiceError
from assessment_engine.service import LocalAssessmentService
from assessment_engine.store import AssessmentStore

from assessment_server.dependencies import get_service, get_store

router = APIRouter(prefix="/assessment-configs", tags=["assessment-configs"])


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/slug/{slug}")
async def get_config_by_slug(
    slug: str,
    service: LocalAssessmentService = Depends(get_service),
) -> dict:
    """Return the published config for ``slug``; 404 when unknown or unpublished."""
    config = await service.fetch_config(slug)
    if config is None:
        raise ServiceError(f"Assessment not found: slug={slug}", status_code=404)
    return config.to_wire()


@router.get("/{config_id}/questions")
async def list_questions(
    config_id: str,
    service: LocalAssessmentService = Depends(get_service),
) -> list[dict]:
    return [q.to_wire() for q in await service.fetch_questions(config_id)]


@router.get("/{config_id}/answers")
async def list_answers(
    config_id: str,
    service: LocalAssessmentService = Depends(get_service),
) -> list[dict]:
    return [a.to_wire() for a in await service.fetch_answers(config_id)]


@router.get("/{config_id}/buckets")
async def list_buckets(
    config_id: str,
    service: LocalAssessmentService = Depends(get_service),
) -> list[dict]:
    """Return the result buckets, sorted by ``order``."""
    buckets = sorted(await service.fetch_buckets(config_id), key=lambda b: b.order)
    return [b.to_wire() for b in buckets]


@router.get("/{config_id}/analysis")
def get_analysis(
    config_id: str,
    store: AssessmentStore = Depends(get_store),
) -> dict:
    """Static analysis of the question graph (orphans, cycles, dangling routes)."""
    return analyze_graph(store.get_graph(config_id)).to_wire()
