"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory SQLite)")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


# ========================================
# Sample content
# ========================================

# A well-formed multiple-choice problem the heuristic reviewer approves
GOOD_CONTENT = "다음 중 소수가 아닌 수는 무엇인가? 보기에서 하나를 고르시오."
GOOD_EXPLANATION = "4는 2로 나누어떨어지므로 소수가 아니다."


@pytest.fixture
def sample_mc_text():
    """Single-line multiple-choice problem with an answer line."""
    return "다음 중 소수가 아닌 것은? ① 2 ② 3 ③ 4 ④ 5\n정답: ③"


@pytest.fixture
def sample_document():
    """Two numbered problems: one complete, one with no answer."""
    return (
        f"1. {GOOD_CONTENT}\n"
        "① 2 ② 3 ③ 4 ④ 5\n"
        "정답: ③\n"
        f"해설: {GOOD_EXPLANATION}\n"
        "2. 3 더하기 4는 얼마인가?\n"
    )


@pytest.fixture
def good_record():
    """ProblemRecord that passes every reviewer check."""
    from problemqa.core.models import ProblemRecord, ProblemType

    return ProblemRecord(
        content=GOOD_CONTENT,
        type=ProblemType.MULTIPLE_CHOICE,
        answer="③",
        options='["2", "3", "4", "5"]',
        explanation=GOOD_EXPLANATION,
    )


@pytest.fixture
def unanswered_record():
    """ProblemRecord with no answer; the reviewer rejects it."""
    from problemqa.core.models import ProblemRecord

    return ProblemRecord(content="3 더하기 4는 얼마인가? 계산하시오.", answer="")


# ========================================
# Database
# ========================================


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with the schema created."""
    from sqlalchemy import create_engine
    from sqlalchemy.pool import StaticPool

    from problemqa.db.database import init_db

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Session bound to the in-memory engine, rolled back after each test."""
    from sqlalchemy.orm import Session

    session = Session(db_engine)
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def repository(db_session):
    """ProblemRepository over the in-memory session."""
    from problemqa.db.repository import ProblemRepository

    return ProblemRepository(db_session)
