from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship

from assessment.logic.lifecycle import utcnow
from .base import Base


class AssessmentPeriod(Base):
    __tablename__ = "assessment_periods"

    id = Column(Integer, primary_key=True)
    academic_year = Column(String, nullable=False)  # e.g. "2024-2025"
    term_name = Column(String, nullable=False)      # e.g. "First Term"
    sequence_order = Column(Integer, default=1)

    # Submission window
    submission_start = Column(DateTime, nullable=False)
    submission_end = Column(DateTime, nullable=False, index=True)

    # At most one period is active; the closing job deactivates expired ones
    is_active = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    reports = relationship("AssessmentReport", back_populates="period")

    @property
    def display_name(self) -> str:
        return f"{self.term_name} {self.academic_year}"
