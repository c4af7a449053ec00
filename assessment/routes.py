"""
Assessment API Routes

Exposes the scoring, rollup and period-closing engine via REST API.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from db import get_db
from .logic.constants import ENGINE_VERSION, SchoolTrack
from .logic.engine import AssessmentEngine
from .logic.lifecycle import ReportLockedError, ReportTransitionError
from .logic.period_closer import close_expired_periods
from .logic.periods import SubmissionWindowClosedError
from .logic.runner import (
    create_report,
    get_school_standing,
    run_national_rollup,
    run_regional_rollup,
    save_section_answers,
    score_and_store_report,
    submit_report,
)


router = APIRouter(prefix="/assessments", tags=["assessments"])

engine = AssessmentEngine()


# =============================================================================
# REQUEST/RESPONSE SCHEMAS
# =============================================================================

class ScoreRequest(BaseModel):
    """Request body for scoring raw answers without persisting them."""
    track: SchoolTrack = Field(
        default=SchoolTrack.GENERAL,
        description="Scoring track: 'general' (primary/nursery) or 'taps' (secondary)"
    )
    answers: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Raw answers keyed by category",
        examples=[{
            "teaching_quality": {
                "percentage_qualified_teachers": 85,
                "pd_sessions_attended": 4,
            },
            "community": {"pta_meetings_held": 3},
        }]
    )


class CreateReportRequest(BaseModel):
    school_id: int
    period_id: Optional[int] = Field(
        default=None,
        description="Assessment period (defaults to the active period)"
    )


class SectionAnswersRequest(BaseModel):
    answers: Dict[str, Any] = Field(default_factory=dict)


def _error_status(e: Exception) -> int:
    if isinstance(e, LookupError):
        return 404
    if isinstance(e, (ReportTransitionError, ReportLockedError)):
        return 409
    if isinstance(e, SubmissionWindowClosedError):
        return 403
    return 400


def _server_error(e: Exception) -> JSONResponse:
    import logging
    logging.getLogger(__name__).exception(f"❌ Assessment request failed: {e}")
    return JSONResponse(status_code=500, content={"error": str(e)})


# =============================================================================
# SCORING
# =============================================================================

@router.post("/score", summary="Score raw answers for a track")
def score_answers(request: ScoreRequest):
    """
    Score a report's raw answers without touching the database.

    **Response:**
    - Category scores, total, rating and points to the next rating
    - Weak categories and improvement recommendations
    """
    score = engine.score_report(request.answers, request.track)
    return {
        "score": score,
        "weak_categories": engine.weak_categories(score),
        "recommendations": engine.recommendations(score),
    }


@router.post("/reports", summary="Open a draft report", status_code=201)
def open_report(request: CreateReportRequest, db_session=Depends(get_db)):
    try:
        with db_session as db:
            report = create_report(db, request.school_id, request.period_id)
            return {
                "report_id": report.id,
                "school_id": report.school_id,
                "period_id": report.period_id,
                "status": report.status,
                "total_score": report.total_score,
                "rating_code": report.rating_code,
            }
    except (LookupError, SubmissionWindowClosedError) as e:
        raise HTTPException(status_code=_error_status(e), detail=str(e))
    except Exception as e:
        return _server_error(e)


@router.put("/reports/{report_id}/sections/{section}", summary="Save one section's answers")
def save_section(report_id: int, section: str, request: SectionAnswersRequest, db_session=Depends(get_db)):
    try:
        with db_session as db:
            return save_section_answers(db, report_id, section, request.answers)
    except (LookupError, ValueError, SubmissionWindowClosedError) as e:
        raise HTTPException(status_code=_error_status(e), detail=str(e))
    except Exception as e:
        return _server_error(e)


@router.post("/reports/{report_id}/score", summary="Recompute and store a report's scores")
def rescore_report(report_id: int, db_session=Depends(get_db)):
    try:
        with db_session as db:
            return score_and_store_report(db, report_id)
    except (LookupError, ReportLockedError) as e:
        raise HTTPException(status_code=_error_status(e), detail=str(e))
    except Exception as e:
        return _server_error(e)


@router.post("/reports/{report_id}/submit", summary="Submit a draft report")
def submit(report_id: int, db_session=Depends(get_db)):
    """
    Finalize a draft report. Re-submitting a submitted report is a no-op;
    expired drafts cannot be submitted (409).
    """
    try:
        with db_session as db:
            return submit_report(db, report_id)
    except (LookupError, ValueError, SubmissionWindowClosedError) as e:
        raise HTTPException(status_code=_error_status(e), detail=str(e))
    except Exception as e:
        return _server_error(e)


# =============================================================================
# ROLLUPS
# =============================================================================

@router.get("/regions/{region_id}/rollup", summary="Regional rollup for a period")
def regional_rollup(
    region_id: int,
    period_id: Optional[int] = Query(default=None, description="Defaults to the active period"),
    previous_period_id: Optional[int] = Query(default=None, description="Defaults to the preceding period"),
    track: SchoolTrack = Query(default=SchoolTrack.GENERAL),
    db_session=Depends(get_db)
):
    try:
        with db_session as db:
            return run_regional_rollup(db, region_id, period_id, previous_period_id, track)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        return _server_error(e)


@router.get("/national/rollup", summary="National rollup for a period")
def national_rollup(
    period_id: Optional[int] = Query(default=None, description="Defaults to the active period"),
    previous_period_id: Optional[int] = Query(default=None, description="Defaults to the preceding period"),
    track: SchoolTrack = Query(default=SchoolTrack.GENERAL),
    db_session=Depends(get_db)
):
    try:
        with db_session as db:
            return run_national_rollup(db, period_id, previous_period_id, track)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        return _server_error(e)


@router.get("/schools/{school_id}/standing", summary="A school's score, rating and position")
def school_standing(
    school_id: int,
    period_id: Optional[int] = Query(default=None, description="Defaults to the active period"),
    db_session=Depends(get_db)
):
    try:
        with db_session as db:
            return get_school_standing(db, school_id, period_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        return _server_error(e)


# =============================================================================
# JOBS
# =============================================================================

@router.post("/jobs/expire-drafts", summary="Close expired periods and expire their drafts")
def expire_drafts(db_session=Depends(get_db)):
    """Safe to call repeatedly; already closed periods are skipped."""
    try:
        with db_session as db:
            return close_expired_periods(db)
    except Exception as e:
        return _server_error(e)


# =============================================================================
# HEALTH CHECK
# =============================================================================

@router.get("/health", summary="Assessment engine health check")
def health_check():
    """Check if the assessment engine is operational."""
    return {"status": "ok", "engine": "assessment", "version": ENGINE_VERSION}
