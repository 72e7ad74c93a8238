"""Endpoints exposing the tiered billing calculator."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import client_key, get_db_session
from src.repositories.plan_repo import PlanRepo
from src.schemas.billing import (
    BillingQuote,
    BillingRequest,
    RecommendRequest,
    Role,
    SiteSurchargeRead,
)
from src.schemas.plan import PlanQuote, PlanRead
from src.services.limits import check_rate_limit
from src.services.plan_selector import plan_unit_price, select_plan
from src.services.pricing import (
    compute_billing,
    compute_site_surcharge,
    normalize_site_count,
)


router = APIRouter(prefix="/billing", tags=["billing"])


@router.post("/quote", response_model=BillingQuote)
async def quote(body: BillingRequest, request: Request):
    await check_rate_limit(client_key(request))
    return compute_billing(body)


@router.post("/recommend", response_model=PlanQuote)
async def recommend(
    body: RecommendRequest,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
):
    await check_rate_limit(client_key(request))

    plans = await PlanRepo(db).list_for_role(body.role)
    plan = select_plan(plans, body.role, body.specialist_count, body.patient_plan)
    is_patient = body.role is Role.PACIENTE
    billing_request = BillingRequest(
        role=body.role,
        unit_price=plan_unit_price(plan, is_patient),
        period=body.period,
        site_count=body.site_count,
        specialist_count=body.specialist_count,
        is_patient=is_patient,
        patient_plan=body.patient_plan,
    )
    return PlanQuote(
        plan=PlanRead.model_validate(plan),
        quote=compute_billing(billing_request),
    )


@router.get("/sites/surcharge", response_model=SiteSurchargeRead)
async def site_surcharge(site_count: str = Query("1", alias="siteCount")):
    return SiteSurchargeRead(
        sede_count=normalize_site_count(site_count),
        sedes_subtotal=compute_site_surcharge(site_count),
    )
