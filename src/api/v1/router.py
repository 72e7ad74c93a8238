"""Version 1 API router."""
from fastapi import APIRouter

from src.api.v1.endpoints import billing, plans, registration

api_router = APIRouter()
api_router.include_router(plans.router)
api_router.include_router(billing.router)
api_router.include_router(registration.router)
