"""
Tests for mapping Firebase identities to users
"""

import pytest
from fastapi import HTTPException

from cleanfoss.auth import resolve_user_for_identity
from cleanfoss.config import SUPER_ADMIN_EMAIL
from cleanfoss.models import Account, User, UserRole


class TestResolveUserForIdentity:
    """First sign-in linking rules"""

    def test_new_email_creates_customer(self, db, catalog):
        user = resolve_user_for_identity(db, "uid-new", "Ny.Kunde@Example.dk", "Ny Kunde")

        assert user.email == "ny.kunde@example.dk"
        assert user.role == UserRole.CUSTOMER.value
        assert db.query(Account).filter(Account.provider_account_id == "uid-new").count() == 1

    def test_verified_email_links_guest(self, db, catalog, customer):
        user = resolve_user_for_identity(
            db, "uid-guest", customer.email, "Mette", email_verified=True
        )

        assert user.id == customer.id
        assert db.query(Account).filter(Account.user_id == customer.id).count() == 1

    def test_unverified_email_cannot_claim_super_admin(self, db, super_admin):
        with pytest.raises(HTTPException) as exc_info:
            resolve_user_for_identity(db, "uid-attacker", SUPER_ADMIN_EMAIL, "Mallory")

        assert exc_info.value.status_code == 409
        assert db.query(Account).count() == 0
        assert db.query(User).filter(User.email == SUPER_ADMIN_EMAIL).one().role == "SUPER_ADMIN"

    def test_unverified_email_cannot_claim_guest(self, db, catalog, customer):
        with pytest.raises(HTTPException) as exc_info:
            resolve_user_for_identity(db, "uid-other", customer.email.upper(), None, email_verified=False)

        assert exc_info.value.status_code == 409
        assert db.query(Account).filter(Account.user_id == customer.id).count() == 0

    def test_existing_link_wins(self, db, catalog, customer):
        db.add(Account(user_id=customer.id, provider="firebase", provider_account_id="uid-linked"))
        db.commit()

        user = resolve_user_for_identity(db, "uid-linked", "someone-else@example.dk", None)

        assert user.id == customer.id
