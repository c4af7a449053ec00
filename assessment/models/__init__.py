# Export all assessment models for easy imports
from .base import Base
from .region import Region
from .school import School
from .period import AssessmentPeriod
from .report import AssessmentReport

__all__ = [
    "Base",
    "Region",
    "School",
    "AssessmentPeriod",
    "AssessmentReport",
]
