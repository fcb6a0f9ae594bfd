"""
Tests for the tenant back office and super-admin endpoints
"""

import pytest

from cleanfoss.models import Company, License, Service, User, UserRole


@pytest.fixture
def other_admin(make_user, other_company):
    return make_user(UserRole.ADMIN, company_id=other_company.id, email="admin@other.dk")


class TestAdminUsers:
    """GET/POST /admin/users"""

    def test_admin_sees_only_own_company(self, client, auth, admin, other_admin, make_user):
        make_user(UserRole.CUSTOMER, company_id="other-company", email="other-customer@example.dk")
        auth.login(admin)

        response = client.get("/admin/users")

        assert response.status_code == 200
        users = response.json()["data"]["users"]
        assert {u["companyId"] for u in users} == {"default-company"}
        assert "admin@other.dk" not in [u["email"] for u in users]

    def test_super_admin_sees_every_company(self, client, auth, super_admin, other_admin):
        auth.login(super_admin)

        response = client.get("/admin/users", params={"limit": 100})

        companies = {u["companyId"] for u in response.json()["data"]["users"]}
        assert {"default-company", "other-company"} <= companies

    def test_search(self, client, auth, admin, make_user):
        make_user(UserRole.AGENT, email="pia.agent@example.dk", name="Pia Agent")
        auth.login(admin)

        response = client.get("/admin/users", params={"search": "pia"})

        assert [u["email"] for u in response.json()["data"]["users"]] == ["pia.agent@example.dk"]

    def test_customer_is_forbidden(self, client, auth, customer):
        auth.login(customer)

        response = client.get("/admin/users")

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Insufficient permissions"}

    def test_create_user_in_own_company(self, client, db, auth, admin):
        auth.login(admin)

        response = client.post(
            "/admin/users",
            json={"name": "Ny Agent", "email": "Ny.Agent@Example.dk", "role": "AGENT",
                  "companyId": "other-company"},
        )

        assert response.status_code == 201
        user = response.json()["data"]["user"]
        assert user["email"] == "ny.agent@example.dk"
        # Admins cannot place users in another tenant
        assert user["companyId"] == "default-company"

    def test_cannot_assign_higher_role(self, client, auth, admin):
        auth.login(admin)

        response = client.post(
            "/admin/users", json={"name": "Boss", "email": "boss@example.dk", "role": "SUPER_ADMIN"}
        )

        assert response.status_code == 403

    def test_duplicate_email(self, client, auth, admin, customer):
        auth.login(admin)

        response = client.post(
            "/admin/users", json={"name": "Dup", "email": customer.email, "role": "CUSTOMER"}
        )

        assert response.status_code == 409


class TestAdminServices:
    """GET/POST /admin/services and extras"""

    def service_body(self, **overrides):
        return {"name": "Vinterpakke", "price": 550, "duration": 90, **overrides}

    def test_list_with_booking_counts(self, client, auth, admin, create_booking):
        create_booking()
        auth.login(admin)

        response = client.get("/admin/services", params={"limit": 10})

        services = {s["id"]: s for s in response.json()["data"]["services"]}
        assert len(services) == 5
        assert services["service-5"]["bookingCount"] == 1
        assert services["service-1"]["bookingCount"] == 0

    def test_create_service(self, client, db, auth, admin):
        auth.login(admin)

        response = client.post("/admin/services", json=self.service_body(categoryId="cat-premium"))

        assert response.status_code == 201
        created = response.json()["data"]["service"]
        service = db.get(Service, created["id"])
        assert service.company_id == "default-company"
        assert service.category_id == "cat-premium"

    def test_duplicate_name_ignores_case(self, client, auth, admin):
        auth.login(admin)

        response = client.post("/admin/services", json=self.service_body(name="express vask"))

        assert response.status_code == 409

    def test_foreign_category(self, client, db, auth, other_admin):
        auth.login(other_admin)

        response = client.post("/admin/services", json=self.service_body(categoryId="cat-premium"))

        assert response.status_code == 400

    def test_capacity_range(self, client, auth, admin):
        auth.login(admin)

        response = client.post(
            "/admin/services", json=self.service_body(minCapacity=3, maxCapacity=2)
        )

        assert response.status_code == 400

    def test_negative_price(self, client, auth, admin):
        auth.login(admin)

        response = client.post("/admin/services", json=self.service_body(price=-1))

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "price"

    def test_add_extra(self, client, auth, admin):
        auth.login(admin)

        response = client.post(
            "/admin/services/service-1/extras", json={"name": "Fælgforsegling", "price": 149}
        )

        assert response.status_code == 201
        assert response.json()["data"]["extra"]["price"] == 149

    def test_add_extra_to_other_tenants_service(self, client, auth, other_admin):
        auth.login(other_admin)

        response = client.post(
            "/admin/services/service-1/extras", json={"name": "Snyd", "price": 1}
        )

        assert response.status_code == 403


class TestAdminBookings:
    """GET /admin/bookings and status updates"""

    def test_agent_moves_booking_through_lifecycle(self, client, auth, make_user, create_booking):
        booking_id = create_booking()
        auth.login(make_user(UserRole.AGENT))

        for status in ("CONFIRMED", "IN_PROGRESS", "COMPLETED"):
            response = client.patch(f"/admin/bookings/{booking_id}/status", json={"status": status})
            assert response.status_code == 200
            assert response.json()["booking"]["status"] == status
            assert response.json()["changed"] is True

    def test_invalid_transition(self, client, auth, admin, create_booking):
        booking_id = create_booking()
        auth.login(admin)

        response = client.patch(
            f"/admin/bookings/{booking_id}/status", json={"status": "COMPLETED"}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Cannot change booking status from PENDING to COMPLETED"

    def test_other_tenant_cannot_touch_booking(self, client, auth, other_admin, create_booking):
        booking_id = create_booking()
        auth.login(other_admin)

        response = client.patch(
            f"/admin/bookings/{booking_id}/status", json={"status": "CANCELLED"}
        )

        assert response.status_code == 403

    def test_finance_cannot_manage_bookings(self, client, auth, make_user, create_booking):
        booking_id = create_booking()
        auth.login(make_user(UserRole.FINANCE))

        response = client.patch(
            f"/admin/bookings/{booking_id}/status", json={"status": "CANCELLED"}
        )

        assert response.status_code == 403

    def test_list_is_tenant_scoped(self, client, auth, admin, other_admin, create_booking):
        create_booking()

        auth.login(admin)
        assert client.get("/admin/bookings").json()["data"]["pagination"]["totalCount"] == 1

        auth.login(other_admin)
        assert client.get("/admin/bookings").json()["data"]["pagination"]["totalCount"] == 0


class TestSuperAdminCompanies:
    """GET/POST /super-admin/companies"""

    def test_create_company(self, client, db, auth, super_admin):
        auth.login(super_admin)

        response = client.post(
            "/super-admin/companies",
            json={"name": "Aarhus Bilvask", "email": "kontakt@aarhusbilvask.dk", "licenseType": "yearly"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["adminCreated"] is True
        assert body["company"]["slug"] == "aarhus-bilvask"
        assert body["license"]["type"] == "YEARLY"
        assert body["license"]["key"].startswith("LICENSE_")
        assert body["license"]["expiresAt"] is not None

        company_admin = db.query(User).filter(User.email == "kontakt@aarhusbilvask.dk").one()
        assert company_admin.role == "ADMIN"
        assert company_admin.name == "Administrator"
        assert company_admin.company_id == body["company"]["id"]

    def test_lifetime_license_never_expires(self, client, db, auth, super_admin):
        auth.login(super_admin)

        response = client.post(
            "/super-admin/companies",
            json={"name": "Evig Vask", "email": "evig@example.dk", "licenseType": "LIFETIME"},
        )

        assert response.json()["license"]["expiresAt"] is None

    def test_slug_collision_gets_suffix(self, client, auth, super_admin):
        auth.login(super_admin)

        first = client.post(
            "/super-admin/companies",
            json={"name": "Blank Bil", "email": "a@blankbil.dk", "licenseType": "MONTHLY"},
        )
        second = client.post(
            "/super-admin/companies",
            json={"name": "Blank Bil", "email": "b@blankbil.dk", "licenseType": "MONTHLY"},
        )

        assert first.json()["company"]["slug"] == "blank-bil"
        assert second.json()["company"]["slug"] == "blank-bil-2"

    def test_duplicate_company_email(self, client, db, auth, super_admin):
        auth.login(super_admin)
        body = {"name": "Dobbelt", "email": "dobbelt@example.dk", "licenseType": "MONTHLY"}
        client.post("/super-admin/companies", json=body)

        response = client.post("/super-admin/companies", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Company email already exists"
        assert db.query(License).count() == 1

    def test_existing_user_email(self, client, db, auth, super_admin, customer):
        auth.login(super_admin)

        response = client.post(
            "/super-admin/companies",
            json={"name": "Kunde Co", "email": customer.email, "licenseType": "MONTHLY"},
        )

        assert response.status_code == 409
        assert db.query(Company).filter(Company.name == "Kunde Co").count() == 0

    def test_invalid_license_type(self, client, auth, super_admin):
        auth.login(super_admin)

        response = client.post(
            "/super-admin/companies",
            json={"name": "X", "email": "x@example.dk", "licenseType": "WEEKLY"},
        )

        assert response.status_code == 400

    def test_list_companies_with_user_counts(self, client, auth, super_admin, admin):
        auth.login(super_admin)

        response = client.get("/super-admin/companies")

        companies = {c["id"]: c for c in response.json()["data"]}
        # Super admin and the default company admin
        assert companies["default-company"]["userCount"] == 2

    def test_admin_is_forbidden(self, client, auth, admin):
        auth.login(admin)

        assert client.get("/super-admin/companies").status_code == 403
