"""Endpoints exposing the plan catalog."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import get_db_session
from src.repositories.plan_repo import PlanRepo
from src.schemas.billing import PatientPlan, Role
from src.schemas.plan import PlanCatalogRead, PlanRead
from src.services.plan_selector import select_plan


router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("", response_model=PlanCatalogRead)
async def list_plans(
    role: Role,
    specialist_count: int = Query(1, alias="specialistCount"),
    patient_plan: PatientPlan = Query(PatientPlan.INDIVIDUAL, alias="patientPlan"),
    db: AsyncSession = Depends(get_db_session),
):
    plans = await PlanRepo(db).list_for_role(role)
    if not plans:
        return PlanCatalogRead()

    recommended = select_plan(plans, role, specialist_count, patient_plan)
    return PlanCatalogRead(
        plans=[PlanRead.model_validate(plan) for plan in plans],
        recommended=recommended.id,
    )
