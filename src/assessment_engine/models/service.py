"""Request/response models at the data-service boundary.

  - LeadData: the lead-capture form (pre-gate or post-gate)
  - SubmitRequest / SubmitResponse: final answer submission
  - CaptureLeadRequest / CaptureLeadResponse: post-gate lead capture

Field names on the wire are preserved exactly (``sessionId``, ``resultUrl``,
``questionId`` ...).
"""

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .graph import WireModel


class LeadData(WireModel):
    """Lead form: name and a valid email are required, company/phone optional."""

    name: str = Field(min_length=1)
    email: EmailStr
    company: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("company", "phone", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        # Empty optional inputs from a form are treated as not provided
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SubmittedAnswer(WireModel):
    """One ``{questionId, answerId}`` pair in a submission."""

    question_id: str
    answer_id: str


class SubmitRequest(WireModel):
    """Body for the submit operation.  Lead fields are present only when pre-gated."""

    answers: list[SubmittedAnswer]
    email: Optional[str] = None
    name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None

    def answer_map(self) -> dict[str, str]:
        """Answers as questionId -> answerId (later duplicates win)."""
        return {a.question_id: a.answer_id for a in self.answers}


class SubmitResponse(WireModel):
    """``result_url`` is absent for POST_GATED runs pending lead capture."""

    session_id: str
    result_url: Optional[str] = None


class CaptureLeadRequest(WireModel):
    """Body for the capture-lead operation against an existing session."""

    email: str
    name: str
    company: Optional[str] = None


class CaptureLeadResponse(WireModel):
    result_url: str
