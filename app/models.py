from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String

from app.db import Base


class Submission(Base):
    """One form submission row, as the lookup backend stores it."""

    __tablename__ = "submissions"
    __table_args__ = (Index("ix_submissions_access_code_submitted", "access_code", "submitted_at"),)

    id = Column(Integer, primary_key=True, index=True)
    access_code = Column(String(16), nullable=False, index=True)
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    respondent_name = Column(String(255), default="", nullable=False)
    respondent_email = Column(String(255), default="", nullable=False)
    organization = Column(String(255), default="", nullable=False)
    maturity_score = Column(Integer, nullable=True)
    maturity_level = Column(String(64), nullable=True)
    clause6_planning_score = Column(Integer, nullable=True)
    clause7_support_score = Column(Integer, nullable=True)
    clause8_operation_score = Column(Integer, nullable=True)
    clause9_performance_score = Column(Integer, nullable=True)
