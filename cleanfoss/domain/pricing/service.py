"""Pricing service - Composes a price quote from the catalog

Prices are whole DKK amounts. Every rounding step rounds half up on Decimal
values so 0.5 always goes up, matching what the booking frontend shows.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY, TAX_RATE
from ..catalog.repository import CatalogRepository

logger = logging.getLogger(__name__)

DEFAULT_VEHICLE_TYPE = "CAR"

VEHICLE_MULTIPLIERS = {
    "CAR": Decimal("1.0"),
    "SUV": Decimal("1.3"),
    "VAN": Decimal("1.5"),
    "TRUCK": Decimal("1.8"),
    "MOTORCYCLE": Decimal("0.7"),
}


def round_currency(value: Decimal) -> Decimal:
    """Round to whole currency units, halves away from zero"""
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def to_number(value: Union[Decimal, float, int]) -> Union[int, float]:
    """JSON-friendly number: int when integral, float otherwise"""
    value = Decimal(str(value))
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def vehicle_multiplier(vehicle_type: Optional[str]) -> Decimal:
    return VEHICLE_MULTIPLIERS.get((vehicle_type or DEFAULT_VEHICLE_TYPE).upper(), Decimal("1.0"))


@dataclass
class PricedLine:
    """One priced component of a quote"""

    kind: str  # service, extra
    item_id: str
    name: str
    unit_price: Decimal
    quantity: int = 1

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class PriceQuote:
    base_price: Decimal
    vehicle_multiplier: Decimal
    extras_price: Decimal
    subtotal: Decimal
    vat: Decimal
    total: Decimal
    currency: str = DEFAULT_CURRENCY
    lines: list[PricedLine] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "basePrice": to_number(self.base_price),
            "extrasPrice": to_number(self.extras_price),
            "vehicleMultiplier": float(self.vehicle_multiplier),
            "subtotal": to_number(self.subtotal),
            "vat": to_number(self.vat),
            "total": to_number(self.total),
            "currency": self.currency,
        }


class PricingComposer:
    """Stateless price calculation over the service catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def compose(
        self,
        service_id: str,
        vehicle_type: Optional[str] = DEFAULT_VEHICLE_TYPE,
        extra_ids: Optional[list[str]] = None,
        company_id: Optional[str] = None,
    ) -> PriceQuote:
        """
        Price a service for a vehicle category plus extras.

        Args:
            service_id: Catalog service id
            vehicle_type: CAR, SUV, VAN, TRUCK or MOTORCYCLE; anything else prices as CAR
            extra_ids: Selected extras; ids not in the catalog add nothing
            company_id: Restrict the catalog lookup to one tenant

        Raises:
            HTTPException: 404 when the service is unknown
        """
        service = self.repo.get_service(self.db, service_id, company_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        multiplier = vehicle_multiplier(vehicle_type)
        base_price = round_currency(Decimal(str(service.price)) * multiplier)
        lines = [PricedLine("service", service.id, service.name, base_price)]

        # Keep the submitted order and repetitions
        extras_by_id = {e.id: e for e in self.repo.get_extras(self.db, extra_ids or [], company_id)}
        extras_price = Decimal("0")
        for extra_id in extra_ids or []:
            extra = extras_by_id.get(extra_id)
            if extra is None:
                logger.warning(f"⚠️ Ignoring unknown extra {extra_id} for service {service_id}")
                continue
            price = Decimal(str(extra.price))
            extras_price += price
            lines.append(PricedLine("extra", extra.id, extra.name, price))

        subtotal = base_price + extras_price
        vat = round_currency(subtotal * Decimal(TAX_RATE))

        return PriceQuote(
            base_price=base_price,
            vehicle_multiplier=multiplier,
            extras_price=extras_price,
            subtotal=subtotal,
            vat=vat,
            total=subtotal + vat,
            lines=lines,
        )
