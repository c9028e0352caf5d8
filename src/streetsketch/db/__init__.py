"""Database models and utilities for the job store."""

from .db_init import init_db
from .db_models import Base, JobRecordModel

__all__ = [
    "Base",
    "JobRecordModel",
    "init_db",
]
