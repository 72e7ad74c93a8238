"""Choose the catalog plan whose price a quote is computed from."""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from src.core.exceptions import PlanNotFoundError
from src.db.models.plan import Plan
from src.repositories.plan_repo import AUDIENCE_BY_ROLE
from src.schemas.billing import ORGANIZATION_ROLES, PatientPlan, Role


logger = logging.getLogger(__name__)

FREE_PATIENT_SLUG = "paciente-gratis"
ROLE_PLAN_SLUGS = {
    Role.MEDICO: "medico",
    Role.ENFERMERO: "enfermero",
}


def _by_slug(plans: Iterable[Plan], slug: str) -> Optional[Plan]:
    return next((plan for plan in plans if plan.id == slug), None)


def select_plan(
    plans: Sequence[Plan],
    role: Role,
    specialist_count: int = 1,
    patient_plan: PatientPlan = PatientPlan.INDIVIDUAL,
) -> Plan:
    """Return the plan a user with ``role`` and ``specialist_count`` should be priced on.

    Only plans offered to the role's audience are candidates, so a mixed
    catalog can be passed in unfiltered.

    Raises:
        PlanNotFoundError: if ``plans`` is empty.
    """
    if not plans:
        raise PlanNotFoundError("No plans available for this role")

    candidates = [plan for plan in plans if plan.audience == AUDIENCE_BY_ROLE[role]]
    selected: Optional[Plan] = None
    if role in ROLE_PLAN_SLUGS:
        selected = _by_slug(candidates, ROLE_PLAN_SLUGS[role])
    elif role is Role.PACIENTE:
        selected = _by_slug(candidates, f"paciente-{patient_plan.value}") or _by_slug(
            candidates, FREE_PATIENT_SLUG
        )
    elif role in ORGANIZATION_ROLES:
        count = max(1, specialist_count)
        brackets = sorted(candidates, key=lambda plan: plan.min_specialists)
        selected = next((plan for plan in brackets if plan.contains(count)), None)

    if selected is None:
        selected = candidates[0] if candidates else plans[0]
        logger.warning(
            f"No plan matched role={role.value} specialists={specialist_count}; "
            f"falling back to {selected.id}"
        )
    return selected


def plan_unit_price(plan: Plan, is_patient: bool) -> float:
    """Price fed to the calculator: the annual reference price for patients."""
    if is_patient and plan.annual_price is not None:
        return plan.annual_price
    return plan.monthly_price
