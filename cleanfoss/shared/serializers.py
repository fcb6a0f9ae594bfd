"""JSON shapes for ORM rows shared by several domains"""

from typing import Optional

from ..models import Booking, CustomerVehicle, Payment, User, isoformat_utc


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "phone": user.phone,
        "role": user.role,
        "status": user.status,
        "companyId": user.company_id,
        "createdAt": isoformat_utc(user.created_at),
        "updatedAt": isoformat_utc(user.updated_at),
    }


def vehicle_to_dict(vehicle: Optional[CustomerVehicle]) -> Optional[dict]:
    if vehicle is None:
        return None
    return {
        "id": vehicle.id,
        "brand": {"id": vehicle.brand.id, "name": vehicle.brand.name} if vehicle.brand else None,
        "model": (
            {
                "id": vehicle.model.id,
                "name": vehicle.model.name,
                "vehicleType": vehicle.model.vehicle_type,
            }
            if vehicle.model
            else None
        ),
        "year": vehicle.year,
        "color": vehicle.color,
        "licensePlate": vehicle.license_plate,
        "nickname": vehicle.nickname,
        "isDefault": vehicle.is_default,
        "createdAt": isoformat_utc(vehicle.created_at),
    }


def payment_to_dict(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "bookingId": payment.booking_id,
        "companyId": payment.company_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "paymentMethod": payment.payment_method,
        "transactionId": payment.transaction_id,
        "status": payment.status,
        "processedAt": isoformat_utc(payment.processed_at),
        "createdAt": isoformat_utc(payment.created_at),
    }


def booking_to_dict(booking: Booking, include_customer: bool = False) -> dict:
    data = {
        "id": booking.id,
        "companyId": booking.company_id,
        "customerId": booking.customer_id,
        "status": booking.status,
        "scheduledAt": isoformat_utc(booking.scheduled_at),
        "duration": booking.duration,
        "totalPrice": booking.total_price,
        "notes": booking.notes,
        "format": booking.source_format,
        "createdAt": isoformat_utc(booking.created_at),
        "updatedAt": isoformat_utc(booking.updated_at),
        "vehicle": vehicle_to_dict(booking.vehicle),
        "location": (
            {
                "id": booking.location.id,
                "name": booking.location.name,
                "address": booking.location.address,
                "city": booking.location.city,
                "postalCode": booking.location.postal_code,
                "country": booking.location.country,
            }
            if booking.location
            else None
        ),
        "services": [
            {
                "id": line.id,
                "serviceId": line.service_id,
                "extraId": line.extra_id,
                "name": line.name,
                "quantity": line.quantity,
                "unitPrice": line.unit_price,
                "totalPrice": line.total_price,
            }
            for line in booking.services
        ],
    }
    if include_customer:
        customer = booking.customer
        data["customer"] = {"id": customer.id, "name": customer.name, "email": customer.email}
    return data
