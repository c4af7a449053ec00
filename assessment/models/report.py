from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from assessment.logic.lifecycle import utcnow
from .base import Base, JSONType


class AssessmentReport(Base):
    __tablename__ = "assessment_reports"
    __table_args__ = (
        UniqueConstraint("school_id", "period_id", name="uq_assessment_report_school_period"),
    )

    id = Column(Integer, primary_key=True)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("assessment_periods.id"), nullable=False, index=True)

    # draft / submitted / expired_draft
    status = Column(String, nullable=False, default="draft", index=True)

    # Raw answers: {category: {answer key: value}}
    answers = Column(JSONType, default=dict)

    # Derived by the scoring engine; never set independently
    category_scores = Column(JSONType, default=dict)
    total_score = Column(Float)
    rating_code = Column(String)

    submitted_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    school = relationship("School", back_populates="reports")
    period = relationship("AssessmentPeriod", back_populates="reports")
