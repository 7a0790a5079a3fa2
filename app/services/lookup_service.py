from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, inspect, select
from sqlalchemy.orm import Session

from app.domain import RawRecord
from app.models import Submission
from app.services.record_fetch import normalize_code

logger = logging.getLogger(__name__)

RECORD_NOT_FOUND = "Record not found"
MISSING_ID = "Missing ID"
ID_COLUMN_MISSING = "ID Column missing"


def _num(value: Any) -> int:
    return int(value or 0)


def submission_payload(row: Submission, code: str) -> RawRecord:
    submitted: datetime | None = row.submitted_at
    return {
        "id": code,
        "respondentName": (row.respondent_name or "").strip() or "User",
        "respondentEmail": (row.respondent_email or "").strip(),
        "organization": (row.organization or "").strip() or "Organization",
        "submissionDate": submitted.strftime("%Y-%m-%d") if submitted else "",
        "aiMaturityScore": _num(row.maturity_score),
        "aiMaturityLevel": str(row.maturity_level or "Pending"),
        "clause6Score": _num(row.clause6_planning_score),
        "clause7Score": _num(row.clause7_support_score),
        "clause8Score": _num(row.clause8_operation_score),
        "clause9Score": _num(row.clause9_performance_score),
    }


def find_submission(db: Session, code: str) -> Submission | None:
    """Newest submission wins when a code was issued more than once."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    return (
        db.execute(
            select(Submission)
            .where(func.upper(func.trim(Submission.access_code)) == normalized)
            .order_by(Submission.submitted_at.desc(), Submission.id.desc())
            .limit(1)
        )
        .scalars()
        .first()
    )


def has_id_column(db: Session) -> bool:
    columns = inspect(db.get_bind()).get_columns(Submission.__tablename__)
    return any(col["name"] == Submission.access_code.key for col in columns)


def lookup(db: Session, raw_id: str | None) -> tuple[int, dict[str, Any]]:
    """Status code and JSON body for one lookup. Storage failures come back as a 500 error body."""
    if not str(raw_id or "").strip():
        return 400, {"error": MISSING_ID}
    try:
        if not has_id_column(db):
            return 500, {"error": ID_COLUMN_MISSING}
        code = normalize_code(raw_id)
        row = find_submission(db, code)
        if row is None:
            return 404, {"error": RECORD_NOT_FOUND}
        return 200, dict(submission_payload(row, code))
    except Exception as exc:
        logger.exception("Lookup failed for id=%s", raw_id)
        return 500, {"error": str(exc) or exc.__class__.__name__}


def add_submission(db: Session, *, access_code: str, **fields: Any) -> Submission:
    row = Submission(access_code=normalize_code(access_code), **fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
