from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from assessment.logic.lifecycle import utcnow
from .base import Base


class Region(Base):
    __tablename__ = "regions"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, default=utcnow)

    schools = relationship("School", back_populates="region")
