"""Pydantic schemas for billing requests and quotes.

Field names are snake_case in Python and camelCase on the wire so the
registration UI can consume quotes unchanged.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from src.core.config import PricingRules


class CamelModel(BaseModel):
    """Immutable model serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Role(str, Enum):
    MEDICO = "MEDICO"
    ENFERMERO = "ENFERMERO"
    PACIENTE = "PACIENTE"
    ADMIN = "ADMIN"
    FARMACIA = "FARMACIA"
    LABORATORIO = "LABORATORIO"


INDIVIDUAL_ROLES = frozenset({Role.MEDICO, Role.ENFERMERO})
ORGANIZATION_ROLES = frozenset({Role.ADMIN, Role.FARMACIA, Role.LABORATORIO})


class BillingPeriod(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"

    @property
    def months(self) -> int:
        return {"monthly": 1, "quarterly": 3, "annual": 12}[self.value]


class PatientPlan(str, Enum):
    INDIVIDUAL = "individual"
    FAMILY = "family"


# ---------------------------------------------------------------------------
# Site counts
# ---------------------------------------------------------------------------


class ExactSites(CamelModel):
    """A site count the user typed in exactly."""

    kind: Literal["exact"] = "exact"
    count: int

    def normalized(self, rules: PricingRules) -> int:
        return max(1, self.count)

    def __str__(self) -> str:
        return str(self.count)


class SiteBand(CamelModel):
    """A closed band such as ``5-10``, priced at a fixed representative count."""

    kind: Literal["band"] = "band"
    low: int = 0
    high: int = 0

    def normalized(self, rules: PricingRules) -> int:
        return rules.band_site_estimate

    def __str__(self) -> str:
        return f"{self.low}-{self.high}"


class OpenEndedSites(CamelModel):
    """An open band such as ``11+``."""

    kind: Literal["open"] = "open"
    minimum: int = 0

    def normalized(self, rules: PricingRules) -> int:
        return rules.open_ended_site_estimate

    def __str__(self) -> str:
        return f"{self.minimum}+"


SiteCount = Annotated[
    Union[ExactSites, SiteBand, OpenEndedSites], Field(discriminator="kind")
]


def _leading_int(text: str) -> int:
    digits = ""
    for char in text.strip():
        if not (char.isascii() and char.isdigit()):
            break
        digits += char
    return int(digits) if digits else 0


def parse_site_count(raw: Any) -> Union[ExactSites, SiteBand, OpenEndedSites]:
    """Turn a UI site value (``3``, ``"3"``, ``"5-10"``, ``"11+"``) into a tagged count.

    Anything unreadable counts as a single site.
    """
    if isinstance(raw, (ExactSites, SiteBand, OpenEndedSites)):
        return raw
    if isinstance(raw, bool) or raw is None:
        return ExactSites(count=1)
    if isinstance(raw, int):
        return ExactSites(count=max(1, raw))
    if isinstance(raw, float):
        if not math.isfinite(raw):
            return ExactSites(count=1)
        return ExactSites(count=max(1, int(raw)))
    if isinstance(raw, str):
        text = raw.strip()
        if "+" in text:
            return OpenEndedSites(minimum=_leading_int(text))
        if "-" in text:
            low, _, high = text.partition("-")
            return SiteBand(low=_leading_int(low), high=_leading_int(high))
        if text.isascii() and text.isdecimal():
            return ExactSites(count=max(1, int(text)))
    return ExactSites(count=1)


def coerce_site_count(value: Any) -> Any:
    if isinstance(value, dict) and "kind" in value:
        return value
    return parse_site_count(value)


def _coerce_money(value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def _coerce_count(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 1


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class BillingRequest(CamelModel):
    """Inputs of a single quote.

    ``is_patient`` defaults to ``role == PACIENTE`` when not supplied.
    """

    role: Role
    unit_price: float = Field(0.0, description="Monthly seat price, or the annual price for patients")
    period: BillingPeriod = BillingPeriod.MONTHLY
    site_count: SiteCount = Field(default_factory=lambda: ExactSites(count=1))
    specialist_count: int = 1
    is_patient: bool = False
    patient_plan: PatientPlan = PatientPlan.INDIVIDUAL

    @model_validator(mode="before")
    @classmethod
    def _default_patient_flag(cls, data: Any) -> Any:
        if isinstance(data, dict):
            flag = data.get("isPatient", data.get("is_patient"))
            if flag is None:
                data = {k: v for k, v in data.items() if k not in ("isPatient", "is_patient")}
                data["isPatient"] = data.get("role") == Role.PACIENTE
        return data

    @field_validator("unit_price", mode="before")
    @classmethod
    def _unit_price(cls, value: Any) -> float:
        return _coerce_money(value)

    @field_validator("specialist_count", mode="before")
    @classmethod
    def _specialist_count(cls, value: Any) -> int:
        return _coerce_count(value)

    @field_validator("site_count", mode="before")
    @classmethod
    def _site_count(cls, value: Any) -> Any:
        return coerce_site_count(value)


class RecommendRequest(CamelModel):
    """A quote request where the price comes from the plan catalog."""

    role: Role
    period: BillingPeriod = BillingPeriod.MONTHLY
    site_count: SiteCount = Field(default_factory=lambda: ExactSites(count=1))
    specialist_count: int = 1
    patient_plan: PatientPlan = PatientPlan.INDIVIDUAL

    @field_validator("specialist_count", mode="before")
    @classmethod
    def _specialist_count(cls, value: Any) -> int:
        return _coerce_count(value)

    @field_validator("site_count", mode="before")
    @classmethod
    def _site_count(cls, value: Any) -> Any:
        return coerce_site_count(value)


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


class IndividualQuote(CamelModel):
    """Flat single-seat price for independent practitioners."""

    type: Literal["INDIVIDUAL"] = "INDIVIDUAL"
    months: int = 1
    discount: float = 0.0
    total: float
    monthly_equivalent: float
    label: str
    price_per_esp: float


class CustomQuote(CamelModel):
    """Escalation to a manual sales quote; carries no price."""

    type: Literal["CUSTOM"] = "CUSTOM"
    requires_quote: Literal[True] = True
    specialist_count: int
    sede_count: int


class CalculatedQuote(CamelModel):
    """Full self-service price breakdown."""

    type: Literal["CALCULATED"] = "CALCULATED"
    months: int
    discount: float
    total: float
    monthly_equivalent: float
    label: str
    base_subtotal: float
    sedes_subtotal: float
    monthly_before_discount: float
    discount_percent: float
    total_charge: float
    billing_cycle: BillingPeriod
    savings: float
    vs_individual_savings: float
    specialist_count: int
    sede_count: int
    price_per_esp: float


BillingQuote = Annotated[
    Union[IndividualQuote, CustomQuote, CalculatedQuote], Field(discriminator="type")
]


class SiteSurchargeRead(CamelModel):
    sede_count: int
    sedes_subtotal: float


__all__ = [
    "BillingPeriod",
    "BillingQuote",
    "BillingRequest",
    "CalculatedQuote",
    "CustomQuote",
    "ExactSites",
    "INDIVIDUAL_ROLES",
    "IndividualQuote",
    "ORGANIZATION_ROLES",
    "OpenEndedSites",
    "PatientPlan",
    "RecommendRequest",
    "Role",
    "SiteBand",
    "SiteCount",
    "SiteSurchargeRead",
    "coerce_site_count",
    "parse_site_count",
]
