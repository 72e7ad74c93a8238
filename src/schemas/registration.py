"""Pydantic schemas for the registration hand-off"""
from enum import Enum
from typing import Optional, Union

from pydantic import Field, field_serializer, field_validator, model_validator

from src.schemas.billing import (
    BillingPeriod,
    BillingQuote,
    CamelModel,
    ExactSites,
    OpenEndedSites,
    PatientPlan,
    Role,
    SiteBand,
    SiteCount,
    coerce_site_count,
)


class OrgType(str, Enum):
    CLINICA = "CLINICA"
    HOSPITAL = "HOSPITAL"
    CONSULTORIO = "CONSULTORIO"
    FARMACIA = "FARMACIA"
    LABORATORIO = "LABORATORIO"


class AccountIn(CamelModel):
    full_name: str = Field(..., min_length=3, description="Account holder name")
    email: str = Field(..., pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    password: str = Field(..., min_length=6)
    role: Role = Role.ADMIN


class OrganizationIn(CamelModel):
    org_name: str = Field(..., min_length=3)
    org_type: OrgType = OrgType.CONSULTORIO
    specialist_count: int = Field(1, description="Billable specialist seats")
    sede_count: SiteCount = Field(default_factory=lambda: ExactSites(count=1))
    org_phone: str = ""
    org_address: str = ""

    @field_validator("sede_count", mode="before")
    @classmethod
    def _sede_count(cls, value):
        return coerce_site_count(value)

    @field_serializer("sede_count")
    def _dump_sede_count(self, value: Union[ExactSites, SiteBand, OpenEndedSites]):
        # The registration API stores what the user picked: 3, "5-10" or "11+".
        if isinstance(value, ExactSites):
            return value.count
        return str(value)


class PatientIn(CamelModel):
    first_name: str = Field(..., min_length=2)
    last_name: str = Field(..., min_length=2)
    identifier: str = Field(..., min_length=4)
    dob: Optional[str] = None
    gender: Optional[str] = None
    phone: str = ""
    address: str = ""
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""
    allergies: str = ""
    chronic_conditions: str = ""
    current_medications: str = ""
    insurance_provider: str = ""
    insurance_number: str = ""
    organization_id: Optional[str] = None


class RegistrationRequest(CamelModel):
    """Registration form as submitted by the UI.

    Prices are never taken from the client; the server selects the plan and
    quotes it again.
    """

    account: AccountIn
    organization: Optional[OrganizationIn] = None
    patient: Optional[PatientIn] = None
    billing_period: Optional[BillingPeriod] = None
    patient_plan: PatientPlan = PatientPlan.INDIVIDUAL

    @model_validator(mode="after")
    def _check_sections(self) -> "RegistrationRequest":
        if self.account.role is Role.PACIENTE:
            if self.patient is None:
                raise ValueError("patient details are required for PACIENTE accounts")
        elif self.organization is None:
            raise ValueError("organization details are required")
        return self

    @property
    def is_patient(self) -> bool:
        return self.account.role is Role.PACIENTE

    @property
    def period(self) -> BillingPeriod:
        """Chosen billing period; patients default to annual, others to monthly."""
        if self.billing_period is not None:
            return self.billing_period
        return BillingPeriod.ANNUAL if self.is_patient else BillingPeriod.MONTHLY


class RegistrationPlan(CamelModel):
    """Plan block of the registration payload, money rounded to cents."""

    selected_plan: str
    billing_period: BillingPeriod
    billing_months: int
    billing_discount: float
    billing_total: float


class RegistrationResult(CamelModel):
    ok: bool = True
    next_url: str
    requires_quote: bool = False
    specialist_count: Optional[int] = None
    sede_count: Optional[int] = None
    selected_plan: Optional[str] = None
    quote: Optional[BillingQuote] = None
