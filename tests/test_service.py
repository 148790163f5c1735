"""LocalAssessmentService tests — error contract and submission retention.

Failures at the data-service boundary are ``ServiceError`` with the status
code the condition maps to, so a flow running over the local service gets
the same retryable handling as one running over HTTP.
"""

from datetime import datetime, timedelta, timezone

import pytest

from assessment_engine.constants import LEAD_ERROR_MESSAGE, SUBMIT_ERROR_MESSAGE
from assessment_engine.engine import AssessmentFlow
from assessment_engine.errors import ServiceError
from assessment_engine.graph import QuestionGraph
from assessment_engine.models.service import CaptureLeadRequest, SubmitRequest, SubmittedAnswer
from assessment_engine.models.session import (
    CompletionStep,
    FlowPhase,
    LeadCaptureStep,
    QuestionStep,
)
from assessment_engine.service import LocalAssessmentService

GTM_ANSWER = SubmitRequest(answers=[SubmittedAnswer(question_id="q-value-prop", answer_id="a-simple")])
LEAD = {"name": "Ada", "email": "ada@example.com"}


class TestServiceErrors:
    """Every boundary failure is a ServiceError carrying its status code."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fetch", ["fetch_questions", "fetch_answers", "fetch_buckets"])
    async def test_unknown_config_is_404(self, repo_store, fetch):
        service = LocalAssessmentService(repo_store)
        with pytest.raises(ServiceError) as exc_info:
            await getattr(service, fetch)("nope")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_submit_unknown_config_is_404(self, repo_store):
        with pytest.raises(ServiceError) as exc_info:
            await LocalAssessmentService(repo_store).submit("nope", GTM_ANSWER)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_submission_is_400(self, repo_store):
        with pytest.raises(ServiceError, match="at least one answer") as exc_info:
            await LocalAssessmentService(repo_store).submit("gtm-assessment", SubmitRequest(answers=[]))
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_capture_unknown_session_is_404(self, repo_store):
        request = CaptureLeadRequest(email="ada@example.com", name="Ada")
        with pytest.raises(ServiceError, match="Session not found") as exc_info:
            await LocalAssessmentService(repo_store).capture_lead("missing", request)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_gated_result_is_404_until_lead(self, repo_store):
        service = LocalAssessmentService(repo_store)
        resp = await service.submit("gtm-assessment", GTM_ANSWER)

        with pytest.raises(ServiceError, match="lead not captured") as exc_info:
            service.get_result(resp.session_id)
        assert exc_info.value.status_code == 404

        await service.capture_lead(resp.session_id, CaptureLeadRequest(email="ada@example.com", name="Ada"))
        record, bucket = service.get_result(resp.session_id)
        assert record.bucket_key == "path-1"
        assert bucket.bucket_key == "path-1"


class TestFlowOverLocalService:
    """Local service failures surface as retryable flow errors, not crashes."""

    @pytest.mark.asyncio
    async def test_lost_session_makes_capture_retryable(self, repo_store):
        service = LocalAssessmentService(repo_store)
        flow = AssessmentFlow(service, slug="gtm-assessment")
        await flow.load()
        step = await flow.select_answer("q-value-prop", "a-simple")
        assert isinstance(step, LeadCaptureStep)

        service.submissions.clear()
        step = await flow.submit_lead(LEAD)
        assert isinstance(step, LeadCaptureStep)
        assert step.error == LEAD_ERROR_MESSAGE
        assert flow.state.phase == FlowPhase.POST_EMAIL_CAPTURE

    @pytest.mark.asyncio
    async def test_unknown_config_makes_submit_retryable(self, repo_store):
        graph = repo_store.get_graph("gtm-assessment")
        ghost = graph.config.model_copy(update={"id": "retired-assessment"})
        flow = AssessmentFlow(LocalAssessmentService(repo_store), slug="gtm-assessment")
        flow.start(QuestionGraph(ghost, graph.sorted_questions(), graph.all_answers(), graph.buckets))

        step = await flow.select_answer("q-value-prop", "a-simple")
        assert isinstance(step, QuestionStep)
        assert step.error == SUBMIT_ERROR_MESSAGE
        assert flow.state.phase == FlowPhase.QUESTIONS

    @pytest.mark.asyncio
    async def test_full_run_completes(self, repo_store):
        flow = AssessmentFlow(LocalAssessmentService(repo_store), slug="gtm-assessment")
        await flow.load()
        await flow.select_answer("q-value-prop", "a-simple")
        step = await flow.submit_lead(LEAD)
        assert isinstance(step, CompletionStep)
        assert step.bucket_key == "path-1"


class TestSubmissionRetention:
    """Submissions older than the TTL are purged before each new submit."""

    @pytest.mark.asyncio
    async def test_expired_submission_purged_on_next_submit(self, repo_store):
        service = LocalAssessmentService(repo_store, submission_ttl=timedelta(hours=1))
        old = await service.submit("gtm-assessment", GTM_ANSWER)
        service.submissions[old.session_id].created_at -= timedelta(hours=2)

        new = await service.submit("gtm-assessment", GTM_ANSWER)
        assert set(service.submissions) == {new.session_id}
        with pytest.raises(ServiceError) as exc_info:
            service.get_result(old.session_id)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_fresh_submissions_kept(self, repo_store):
        service = LocalAssessmentService(repo_store, submission_ttl=timedelta(hours=1))
        first = await service.submit("gtm-assessment", GTM_ANSWER)
        await service.submit("gtm-assessment", GTM_ANSWER)
        assert first.session_id in service.submissions
        assert len(service.submissions) == 2

    @pytest.mark.asyncio
    async def test_purge_returns_removed_count(self, repo_store):
        service = LocalAssessmentService(repo_store, submission_ttl=timedelta(minutes=30))
        await service.submit("gtm-assessment", GTM_ANSWER)
        await service.submit("gtm-assessment", GTM_ANSWER)

        later = datetime.now(timezone.utc) + timedelta(hours=1)
        assert service.purge_expired(now=later) == 2
        assert service.submissions == {}

    @pytest.mark.asyncio
    async def test_no_ttl_keeps_everything(self, repo_store):
        service = LocalAssessmentService(repo_store)
        await service.submit("gtm-assessment", GTM_ANSWER)
        far_future = datetime.now(timezone.utc) + timedelta(days=3650)
        assert service.purge_expired(now=far_future) == 0
        assert len(service.submissions) == 1
