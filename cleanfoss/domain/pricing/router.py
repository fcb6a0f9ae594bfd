"""Pricing router - FastAPI endpoints for price quotes"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import PricingRequest
from .service import PricingComposer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["Pricing"])


def get_pricing_composer(db: Session = Depends(get_db)) -> PricingComposer:
    """Dependency injection for PricingComposer"""
    return PricingComposer(db)


@router.post("/calculate")
async def calculate_pricing(
    data: PricingRequest,
    composer: PricingComposer = Depends(get_pricing_composer),
):
    """Quote a service for a vehicle type and a set of extras"""
    quote = composer.compose(data.serviceId, data.vehicleType, data.extras, data.companyId)
    return {"success": True, "pricing": quote.as_dict()}
