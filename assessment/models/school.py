from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from assessment.logic.lifecycle import utcnow
from .base import Base


class School(Base):
    __tablename__ = "schools"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    region_id = Column(Integer, ForeignKey("regions.id"), index=True)

    # primary / nursery -> general track, secondary -> TAPS track
    school_type = Column(String, nullable=False, default="primary")

    created_at = Column(DateTime, default=utcnow)

    region = relationship("Region", back_populates="schools")
    reports = relationship("AssessmentReport", back_populates="school")
