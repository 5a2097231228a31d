"""
Database models package - SQLAlchemy ORM models
"""

from .script_job import ScriptJob
from .user import User

__all__ = [
    "ScriptJob",
    "User",
]
