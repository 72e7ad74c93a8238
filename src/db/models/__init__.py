"""Database models package exports."""

from src.db.models.plan import Plan

__all__ = ["Plan"]
