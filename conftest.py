import os

# Tests never touch a real database
os.environ["DATABASE_URL"] = "sqlite://"

from contextlib import contextmanager
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import Base, get_db
from assessment.models import AssessmentPeriod, AssessmentReport, Region, School
from assessment.logic.lifecycle import utcnow


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from main import app

    @contextmanager
    def _test_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = lambda: _test_db()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# =============================================================================
# RECORD FACTORIES
# =============================================================================

@pytest.fixture
def make_region(db_session):
    def _make(name):
        region = Region(name=name)
        db_session.add(region)
        db_session.flush()
        return region
    return _make


@pytest.fixture
def make_school(db_session):
    def _make(name, region=None, school_type="primary"):
        school = School(
            name=name,
            region_id=region.id if region is not None else None,
            school_type=school_type,
        )
        db_session.add(school)
        db_session.flush()
        return school
    return _make


@pytest.fixture
def make_period(db_session):
    def _make(term_name="First Term", academic_year="2024-2025", start=None, end=None,
              is_active=True, sequence_order=1):
        now = utcnow()
        period = AssessmentPeriod(
            academic_year=academic_year,
            term_name=term_name,
            sequence_order=sequence_order,
            submission_start=start or now - timedelta(days=10),
            submission_end=end or now + timedelta(days=20),
            is_active=is_active,
        )
        db_session.add(period)
        db_session.flush()
        return period
    return _make


@pytest.fixture
def make_report(db_session):
    def _make(school, period, status="submitted", total_score=None, category_scores=None,
              answers=None, submitted_at=None, rating_code=None):
        if status == "submitted" and submitted_at is None:
            submitted_at = utcnow()
        report = AssessmentReport(
            school_id=school.id,
            period_id=period.id,
            status=status,
            answers=answers or {},
            category_scores=category_scores or {},
            total_score=total_score,
            rating_code=rating_code,
            submitted_at=submitted_at,
        )
        db_session.add(report)
        db_session.flush()
        return report
    return _make
