"""Endpoint handing a completed registration off to the registration API."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import client_key, get_db_session
from src.core.config import settings
from src.repositories.plan_repo import PlanRepo
from src.schemas.billing import CustomQuote
from src.schemas.registration import RegistrationRequest, RegistrationResult
from src.services.limits import check_rate_limit, ensure_idempotent
from src.services.registration import (
    RegistrationClient,
    build_registration_payload,
    get_registration_client,
    quote_registration,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/register", tags=["registration"])


@router.post("", response_model=RegistrationResult, response_model_exclude_none=True)
async def register(
    body: RegistrationRequest,
    request: Request,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    db: AsyncSession = Depends(get_db_session),
    registration_client: RegistrationClient = Depends(get_registration_client),
):
    caller = client_key(request)
    await check_rate_limit(caller, scope="register")
    await ensure_idempotent(caller, idempotency_key)

    plans = await PlanRepo(db).list_for_role(body.account.role)
    plan, quote = quote_registration(body, plans)

    if isinstance(quote, CustomQuote):
        # Large deals go to sales; nothing is registered yet.
        logger.info(
            f"Registration for {body.account.email} routed to custom quote "
            f"(specialists={quote.specialist_count}, sedes={quote.sede_count})"
        )
        return RegistrationResult(
            next_url=settings.registration.quote_pending_url,
            requires_quote=True,
            specialist_count=quote.specialist_count,
            sede_count=quote.sede_count,
            quote=quote,
        )

    payload = build_registration_payload(body, plan, quote)
    data = await registration_client.submit(payload)
    logger.info(
        f"Registered {body.account.email} on plan {plan.id} "
        f"({body.period.value}, total={round(quote.total, 2)})"
    )
    return RegistrationResult(
        next_url=data.get("nextUrl") or settings.registration.default_next_url,
        selected_plan=plan.id,
        quote=quote,
    )
