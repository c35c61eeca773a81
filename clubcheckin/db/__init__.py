"""Database package."""
from clubcheckin.db.session import engine, SessionLocal, get_db, get_db_context
from clubcheckin.db.base import Base

__all__ = ["engine", "SessionLocal", "get_db", "get_db_context", "Base"]
