"""Database package."""

from taskboard.db.base import Base
from taskboard.db.session import get_db_session

__all__ = ["Base", "get_db_session"]
