"""Repository layer package."""

from src.repositories.plan_repo import PlanRepo

__all__ = ["PlanRepo"]
