"""Resolve which user a booking belongs to"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import User, UserRole
from .schemas import ContactInfo

logger = logging.getLogger(__name__)


def resolve_customer(db: Session, current_user: Optional[User], contact: ContactInfo) -> User:
    """
    Return the booking's customer without committing.

    Signed-in callers are reloaded by id and only take over non-empty name and
    phone values. Guests are upserted by lowercased email; a concurrent insert
    of the same email is absorbed by a savepoint and the winner's row is used.
    """
    if current_user is not None:
        customer = db.get(User, current_user.id)
        if customer is None:
            raise HTTPException(status_code=404, detail="Identity not found")
        if contact.name:
            customer.name = contact.name
        if contact.phone:
            customer.phone = contact.phone
        return customer

    email = contact.email.strip().lower()
    customer = db.query(User).filter(User.email == email).first()
    if customer is None:
        try:
            with db.begin_nested():
                customer = User(
                    email=email,
                    name=contact.name,
                    phone=contact.phone,
                    role=UserRole.CUSTOMER.value,
                )
                db.add(customer)
            logger.info(f"🆕 Created guest customer {email}")
            return customer
        except IntegrityError:
            logger.info(f"🔄 Guest {email} was created concurrently, reusing it")
            customer = db.query(User).filter(User.email == email).first()
            if customer is None:
                raise

    customer.name = contact.name
    customer.phone = contact.phone
    return customer
