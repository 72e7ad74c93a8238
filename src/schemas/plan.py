"""Pydantic schemas for catalog plans"""
from typing import List, Optional

from pydantic import ConfigDict, Field

from src.schemas.billing import BillingQuote, CamelModel


class PlanRead(CamelModel):
    """Schema returned when reading a plan."""

    slug: str = Field(..., description="Plan identifier")
    name: str = Field(..., description="Display label")
    audience: str = Field(..., description="Who the plan is offered to")
    min_specialists: int = Field(0, description="Lower bound of the bracket, 0 when open")
    max_specialists: int = Field(0, description="Upper bound of the bracket, 0 when open")
    monthly_price: float = Field(..., description="Monthly unit price")
    quarterly_price: Optional[float] = Field(
        default=None, description="Precomputed quarterly price"
    )
    annual_price: Optional[float] = Field(
        default=None, description="Precomputed annual price"
    )
    description: Optional[str] = Field(default=None, description="Marketing copy")

    model_config = ConfigDict(from_attributes=True)


class PlanCatalogRead(CamelModel):
    """Plans offered to a role plus the one recommended for its counts."""

    plans: List[PlanRead] = Field(default_factory=list)
    recommended: Optional[str] = Field(
        default=None, description="Slug of the recommended plan"
    )


class PlanQuote(CamelModel):
    """A catalog plan together with the quote computed from its price."""

    plan: PlanRead
    quote: BillingQuote
