"""Pricing domain schemas"""

from typing import Optional

from pydantic import BaseModel


class PricingRequest(BaseModel):
    serviceId: str
    vehicleType: Optional[str] = "CAR"
    extras: list[str] = []
    companyId: Optional[str] = None
