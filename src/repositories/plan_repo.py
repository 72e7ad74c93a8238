"""Repository utilities for the plan catalog."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.plan import Plan
from src.schemas.billing import Role

AUDIENCE_BY_ROLE: dict[Role, str] = {
    Role.MEDICO: "physician",
    Role.ENFERMERO: "nurse",
    Role.PACIENTE: "patient",
    Role.ADMIN: "organization",
    Role.FARMACIA: "organization",
    Role.LABORATORIO: "organization",
}


class PlanRepo:
    """Data-access helpers for :class:`Plan`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, plan_id: str) -> Plan | None:
        result = await self.session.execute(select(Plan).where(Plan.id == plan_id))
        return result.scalar_one_or_none()

    async def list_active(self) -> list[Plan]:
        result = await self.session.execute(
            select(Plan)
            .where(Plan.is_active.is_(True))
            .order_by(Plan.min_specialists, Plan.id)
        )
        return list(result.scalars().all())

    async def list_for_role(self, role: Role) -> list[Plan]:
        """Active plans offered to ``role``, ordered by bracket."""
        result = await self.session.execute(
            select(Plan)
            .where(Plan.is_active.is_(True), Plan.audience == AUDIENCE_BY_ROLE[role])
            .order_by(Plan.min_specialists, Plan.id)
        )
        return list(result.scalars().all())
