from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, TypedDict

DEMO_CODE = "DEMO"

CLAUSE_LABELS: dict[str, str] = {
    "clause6_score": "Planning",
    "clause7_score": "Support",
    "clause8_score": "Operation",
    "clause9_score": "Performance",
}


class RawRecord(TypedDict, total=False):
    id: str
    respondentName: str
    respondentEmail: str
    organization: str
    submissionDate: str
    aiMaturityScore: int
    aiMaturityLevel: str
    clause6Score: int
    clause7Score: int
    clause8Score: int
    clause9Score: int


@dataclass(slots=True, frozen=True)
class AssessmentRecord:
    id: str
    respondent_name: str
    respondent_email: str
    organization: str
    submission_date: str
    overall_score: int
    overall_level: str
    clause6_score: int
    clause7_score: int
    clause8_score: int
    clause9_score: int

    @property
    def is_demo(self) -> bool:
        return self.id == DEMO_CODE

    def clause_scores(self) -> list[tuple[str, int]]:
        return [(label, int(getattr(self, attr))) for attr, label in CLAUSE_LABELS.items()]

    def to_payload(self) -> RawRecord:
        return {
            "id": self.id,
            "respondentName": self.respondent_name,
            "respondentEmail": self.respondent_email,
            "organization": self.organization,
            "submissionDate": self.submission_date,
            "aiMaturityScore": self.overall_score,
            "aiMaturityLevel": self.overall_level,
            "clause6Score": self.clause6_score,
            "clause7Score": self.clause7_score,
            "clause8Score": self.clause8_score,
            "clause9Score": self.clause9_score,
        }


def _score(value: Any) -> int:
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0


def _text(value: Any, fallback: str) -> str:
    text = str(value).strip() if value is not None else ""
    return text or fallback


def to_assessment_record(payload: dict[str, Any], *, code: str = "") -> AssessmentRecord:
    """Map a lookup payload onto the record type, filling placeholders for absent fields."""
    return AssessmentRecord(
        id=_text(payload.get("id"), code).upper(),
        respondent_name=_text(payload.get("respondentName"), "User"),
        respondent_email=_text(payload.get("respondentEmail"), ""),
        organization=_text(payload.get("organization"), "Organization"),
        submission_date=_text(payload.get("submissionDate"), ""),
        overall_score=_score(payload.get("aiMaturityScore")),
        overall_level=_text(payload.get("aiMaturityLevel"), "Pending"),
        clause6_score=_score(payload.get("clause6Score")),
        clause7_score=_score(payload.get("clause7Score")),
        clause8_score=_score(payload.get("clause8Score")),
        clause9_score=_score(payload.get("clause9Score")),
    )


def demo_record() -> AssessmentRecord:
    return AssessmentRecord(
        id=DEMO_CODE,
        respondent_name="Demo User",
        respondent_email="demo@example.com",
        organization="Demo Organization",
        submission_date=date.today().isoformat(),
        overall_score=72,
        overall_level="Defined",
        clause6_score=65,
        clause7_score=80,
        clause8_score=75,
        clause9_score=60,
    )


@dataclass(slots=True, frozen=True)
class NarrativeResult:
    executive_summary: str
    gap_analysis: str
    recommendations: str

    def to_payload(self) -> dict[str, str]:
        return {
            "executiveSummary": self.executive_summary,
            "gapAnalysis": self.gap_analysis,
            "recommendations": self.recommendations,
        }


class FetchFailureKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    PERMISSION = "PERMISSION"
    NETWORK = "NETWORK"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    SERVER_STATUS = "SERVER_STATUS"
    SCRIPT_ERROR = "SCRIPT_ERROR"
    UNKNOWN = "UNKNOWN"


class FetchFailure(Exception):
    def __init__(
        self,
        kind: FetchFailureKind,
        detail: str = "",
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "detail": self.detail,
            "status_code": self.status_code,
            "endpoint": self.endpoint,
        }
