"""Tiered billing calculator.

Everything here is synchronous and side-effect free: a :class:`BillingRequest`
goes in, exactly one quote comes out. Thresholds and rates are read from a
:class:`PricingRules` object, ``settings.pricing`` unless one is passed in.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from src.core.config import PricingRules, settings
from src.schemas.billing import (
    INDIVIDUAL_ROLES,
    BillingPeriod,
    BillingQuote,
    BillingRequest,
    CalculatedQuote,
    CustomQuote,
    IndividualQuote,
    parse_site_count,
)


logger = logging.getLogger(__name__)

_PERIOD_NAMES = {
    BillingPeriod.MONTHLY: "Mensual",
    BillingPeriod.QUARTERLY: "Trimestral",
    BillingPeriod.ANNUAL: "Anual",
}


def _rules(rules: Optional[PricingRules]) -> PricingRules:
    return rules if rules is not None else settings.pricing


def _percent(discount: float) -> str:
    return f"{discount * 100:.0f}%"


def normalize_site_count(raw: Any, rules: Optional[PricingRules] = None) -> int:
    """Reduce a site value (int, ``"5-10"``, ``"11+"`` or a parsed count) to one integer.

    Integers pass through unchanged, so normalizing twice is a no-op.
    """
    return parse_site_count(raw).normalized(_rules(rules))


def compute_site_surcharge(site_count: Any, rules: Optional[PricingRules] = None) -> float:
    """Monthly multi-site surcharge.

    The first site is included. The next ``site_tier_size`` sites cost
    ``site_tier_rate`` each and every site after that ``site_overflow_rate``.
    """
    rules = _rules(rules)
    count = normalize_site_count(site_count, rules)
    if count <= 1:
        return 0.0
    extra = count - 1
    tiered = min(extra, rules.site_tier_size)
    overflow = max(extra - rules.site_tier_size, 0)
    return tiered * rules.site_tier_rate + overflow * rules.site_overflow_rate


def period_discount(period: BillingPeriod, is_patient: bool, rules: Optional[PricingRules] = None) -> float:
    """Discount rate applied for ``period``.

    Patients only get a quarterly discount: their annual price is already a
    flat pre-set price.
    """
    rules = _rules(rules)
    if is_patient:
        return rules.patient_quarterly_discount if period is BillingPeriod.QUARTERLY else 0.0
    if period is BillingPeriod.QUARTERLY:
        return rules.org_quarterly_discount
    if period is BillingPeriod.ANNUAL:
        return rules.org_annual_discount
    return 0.0


def requires_custom_quote(
    specialist_count: int,
    site_count: Any,
    is_patient: bool,
    rules: Optional[PricingRules] = None,
) -> bool:
    """Whether the deal is too large for self-service pricing."""
    if is_patient:
        return False
    rules = _rules(rules)
    sede_count = normalize_site_count(site_count, rules)
    return (
        specialist_count >= rules.custom_quote_specialist_threshold
        or sede_count >= rules.custom_quote_site_threshold
    )


def compute_billing(request: BillingRequest, rules: Optional[PricingRules] = None) -> BillingQuote:
    """Quote ``request``.

    Branches are tried in a fixed order and the first match wins:

    1. independent physicians and nurses pay a flat single-seat price;
    2. large organizations (specialists or sites over the thresholds) are
       escalated to a custom quote;
    3. patients are priced from their annual reference price;
    4. everyone else gets the bracket price per specialist plus the site
       surcharge, discounted by billing period.
    """
    rules = _rules(rules)

    if request.role in INDIVIDUAL_ROLES:
        return _individual_quote(request)

    sede_count = normalize_site_count(request.site_count, rules)
    if requires_custom_quote(request.specialist_count, sede_count, request.is_patient, rules):
        logger.info(
            f"Custom quote required: specialists={request.specialist_count} "
            f"sedes={sede_count} role={request.role.value}"
        )
        return CustomQuote(
            specialist_count=request.specialist_count,
            sede_count=sede_count,
        )

    if request.is_patient:
        return _patient_quote(request, rules)
    return _organization_quote(request, sede_count, rules)


def _individual_quote(request: BillingRequest) -> IndividualQuote:
    return IndividualQuote(
        total=request.unit_price,
        monthly_equivalent=request.unit_price,
        label="Plan individual (pago mensual)",
        price_per_esp=request.unit_price,
    )


def _patient_quote(request: BillingRequest, rules: PricingRules) -> CalculatedQuote:
    # unit_price is the annual reference price; monthly figures amortize it.
    period = request.period
    months = period.months
    discount = period_discount(period, True, rules)
    monthly_equivalent = request.unit_price / 12

    if period is BillingPeriod.ANNUAL:
        subtotal = request.unit_price
        label = "Anual (pago único)"
    elif period is BillingPeriod.QUARTERLY:
        subtotal = monthly_equivalent * months
        label = f"Trimestral ({_percent(discount)} sobre equivalente mensual)"
    else:
        subtotal = monthly_equivalent
        label = "Mensual (equivalente del plan anual)"

    total = subtotal * (1 - discount)
    logger.debug(f"Patient quote {period.value}: total={total:.4f}")
    return CalculatedQuote(
        months=months,
        discount=discount,
        total=total,
        monthly_equivalent=monthly_equivalent,
        label=label,
        base_subtotal=subtotal,
        sedes_subtotal=0.0,
        monthly_before_discount=monthly_equivalent,
        discount_percent=round(discount * 100, 2),
        total_charge=total,
        billing_cycle=period,
        savings=subtotal - total,
        vs_individual_savings=0.0,
        specialist_count=1,
        sede_count=1,
        price_per_esp=request.unit_price,
    )


def _organization_quote(
    request: BillingRequest, sede_count: int, rules: PricingRules
) -> CalculatedQuote:
    period = request.period
    months = period.months
    specialist_count = max(1, request.specialist_count)

    base_subtotal = request.unit_price * specialist_count
    sedes_subtotal = compute_site_surcharge(sede_count, rules)
    monthly_total = base_subtotal + sedes_subtotal

    discount = period_discount(period, False, rules)
    discounted_monthly = monthly_total * (1 - discount)
    total = discounted_monthly * months

    if discount:
        label = f"{_PERIOD_NAMES[period]} ({_percent(discount)} descuento)"
    else:
        label = f"{_PERIOD_NAMES[period]} (sin descuento)"

    # Display only: what every specialist would pay on the flat individual plan.
    individual_cost = specialist_count * rules.individual_reference_price
    vs_individual_savings = max(0.0, individual_cost - discounted_monthly)

    logger.debug(
        f"Organization quote {period.value}: specialists={specialist_count} "
        f"sedes={sede_count} monthly={monthly_total:.2f} total={total:.2f}"
    )
    return CalculatedQuote(
        months=months,
        discount=discount,
        total=total,
        monthly_equivalent=discounted_monthly,
        label=label,
        base_subtotal=base_subtotal,
        sedes_subtotal=sedes_subtotal,
        monthly_before_discount=monthly_total,
        discount_percent=round(discount * 100, 2),
        total_charge=total,
        billing_cycle=period,
        savings=max(0.0, monthly_total * months - total),
        vs_individual_savings=vs_individual_savings,
        specialist_count=specialist_count,
        sede_count=sede_count,
        price_per_esp=request.unit_price,
    )
