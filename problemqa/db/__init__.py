"""Optional SQLAlchemy storage adapter."""

from problemqa.db.database import create_db_engine, get_engine, init_db, session_scope
from problemqa.db.models import Base, Problem, ProblemReview, ProblemSource, ReviewQueueItem
from problemqa.db.repository import ProblemRepository

__all__ = [
    "Base",
    "Problem",
    "ProblemSource",
    "ProblemReview",
    "ReviewQueueItem",
    "ProblemRepository",
    "create_db_engine",
    "get_engine",
    "init_db",
    "session_scope",
]
