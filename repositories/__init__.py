"""
Database repositories.
"""
from .base import BaseRepository
from .planning import ProjectRepository, BoqRepository, KpiRepository

__all__ = [
    "BaseRepository",
    "ProjectRepository",
    "BoqRepository",
    "KpiRepository",
]
