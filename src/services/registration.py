"""Hand-off of a completed registration to the external registration API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

import httpx

from src.core.config import settings
from src.core.exceptions import RegistrationError
from src.db.models.plan import Plan
from src.schemas.billing import BillingQuote, BillingRequest, CustomQuote
from src.schemas.registration import RegistrationPlan, RegistrationRequest
from src.services.plan_selector import plan_unit_price, select_plan
from src.services.pricing import compute_billing


logger = logging.getLogger(__name__)


def quote_registration(
    body: RegistrationRequest, plans: Sequence[Plan]
) -> Tuple[Plan, BillingQuote]:
    """Select the plan for a registration and quote it."""

    specialist_count = body.organization.specialist_count if body.organization else 1
    plan = select_plan(plans, body.account.role, specialist_count, body.patient_plan)
    request = BillingRequest(
        role=body.account.role,
        unit_price=plan_unit_price(plan, body.is_patient),
        period=body.period,
        site_count=body.organization.sede_count if body.organization else 1,
        specialist_count=specialist_count,
        is_patient=body.is_patient,
        patient_plan=body.patient_plan,
    )
    return plan, compute_billing(request)


def build_plan_payload(plan: Plan, quote: BillingQuote, body: RegistrationRequest) -> RegistrationPlan:
    if isinstance(quote, CustomQuote):
        raise ValueError("custom quotes have no plan payload")
    return RegistrationPlan(
        selected_plan=plan.id,
        billing_period=body.period,
        billing_months=quote.months,
        billing_discount=round(quote.discount, 2),
        billing_total=round(quote.total, 2),
    )


def build_registration_payload(
    body: RegistrationRequest, plan: Plan, quote: BillingQuote
) -> Dict[str, Any]:
    """JSON body posted to the registration API.

    Patients on a free plan carry no ``plan`` block.
    """
    payload: Dict[str, Any] = {
        "account": body.account.model_dump(mode="json", by_alias=True),
    }
    if body.is_patient:
        payload["patient"] = body.patient.model_dump(
            mode="json", by_alias=True, exclude_none=True
        )
    else:
        payload["organization"] = body.organization.model_dump(mode="json", by_alias=True)

    if not (body.is_patient and quote.total <= 0):
        payload["plan"] = build_plan_payload(plan, quote, body).model_dump(
            mode="json", by_alias=True
        )
    return payload


class RegistrationClient:
    """Thin async client for the registration API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.registration.base_url,
            timeout=timeout or settings.registration.timeout_seconds,
            transport=transport,
        )

    async def submit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST ``payload`` and return the decoded response body.

        Raises:
            RegistrationError: on transport failures (502) or a non-2xx
                response, which keeps the upstream status and message.
        """
        try:
            response = await self._client.post(settings.registration.path, json=payload)
        except httpx.HTTPError as exc:
            logger.error(f"Registration API unreachable: {exc}")
            raise RegistrationError("Registration service unavailable") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_error:
            message = data.get("message") or "Registration failed"
            logger.error(f"Registration API returned {response.status_code}: {message}")
            raise RegistrationError(message, status_code=response.status_code)
        return data

    async def aclose(self) -> None:
        await self._client.aclose()


_registration_client: RegistrationClient | None = None


def get_registration_client() -> RegistrationClient:
    """Return the shared client (FastAPI dependency)."""

    global _registration_client
    if _registration_client is None:
        _registration_client = RegistrationClient()
    return _registration_client


async def close_registration_client() -> None:
    global _registration_client
    if _registration_client is not None:
        await _registration_client.aclose()
    _registration_client = None
