"""
Tests for health, monitoring, catalog listings and request plumbing
"""

import time

import pytest
import redis

from cleanfoss import config, rate_limiter
from cleanfoss.rate_limiter import check_rate_limit, windows


class TestHealthEndpoint:
    """GET /health"""

    def test_open_without_secret(self, client, catalog):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == config.APP_VERSION
        assert body["checks"]["database"]["details"] == {"connected": True}
        assert body["checks"]["database"]["responseTime"].endswith("ms")
        assert body["checks"]["auth"]["details"]["hasProjectId"] is True
        assert body["checks"]["system"]["details"]["uptime"].endswith("s")
        assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
        assert response.headers["pragma"] == "no-cache"

    @pytest.mark.parametrize(
        "headers, params",
        [
            ({"Authorization": "Bearer s3cret"}, {}),
            ({"X-Health-Secret": "s3cret"}, {}),
            ({}, {"secret": "s3cret"}),
        ],
    )
    def test_secret_accepted_in_every_form(self, client, catalog, monkeypatch, headers, params):
        monkeypatch.setattr(config, "HEALTH_CHECK_SECRET", "s3cret")

        response = client.get("/health", headers=headers, params=params)

        assert response.status_code == 200

    def test_wrong_secret(self, client, catalog, monkeypatch):
        monkeypatch.setattr(config, "HEALTH_CHECK_SECRET", "s3cret")

        response = client.get("/health", headers={"Authorization": "Bearer guess"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    def test_missing_auth_configuration_is_unhealthy(self, client, catalog, monkeypatch):
        monkeypatch.setattr("cleanfoss.domain.monitoring.service.FIREBASE_PROJECT_ID", None)

        response = client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["checks"]["auth"]["status"] == "unhealthy"


class TestDatabaseMonitor:
    """GET /monitoring/database"""

    def test_row_counts(self, client, catalog, create_booking):
        create_booking()

        response = client.get("/monitoring/database")

        assert response.status_code == 200
        body = response.json()
        assert body["tables"]["services"] == 5
        assert body["tables"]["serviceExtras"] == 9
        assert body["tables"]["bookings"] == 1
        assert body["totalRows"] == sum(body["tables"].values())

    def test_uses_monitoring_secret(self, client, catalog, monkeypatch):
        monkeypatch.setattr(config, "MONITORING_SECRET", "watch")

        assert client.get("/monitoring/database").status_code == 401
        assert client.get("/monitoring/database", headers={"X-Monitoring-Secret": "watch"}).status_code == 200


class TestCatalogEndpoints:
    """GET /services and /car-brands"""

    def test_services_default_to_default_company(self, client, catalog):
        response = client.get("/services")

        body = response.json()
        assert body["total"] == 5
        express = next(s for s in body["services"] if s["id"] == "service-5")
        assert [e["id"] for e in express["extras"]] == ["extra-9"]
        assert express["category"]["slug"] == "express"

    def test_search(self, client, catalog):
        response = client.get("/services", params={"search": "suv"})

        assert [s["id"] for s in response.json()["services"]] == ["service-4"]

    def test_car_brands_require_company(self, client, catalog):
        response = client.get("/car-brands")

        assert response.status_code == 400
        assert response.json()["error"] == "companyId is required"

    def test_car_brands(self, client, suv_model):
        response = client.get("/car-brands", params={"companyId": "default-company"})

        brands = response.json()["data"]
        assert [b["name"] for b in brands] == ["Volvo"]


class FakeRedis:
    """Just enough of redis.Redis for the limiter's mirror writes"""

    def __init__(self):
        self.values = {}

    def get(self, key):
        return self.values.get(key)

    def ttl(self, key):
        return -2

    def set(self, key, value, ex=None):
        self.values[key] = value


@pytest.mark.unit
class TestRateLimiter:
    """Sliding counter per key"""

    def test_blocks_after_limit(self):
        windows.clear()
        client = FakeRedis()

        results = [check_rate_limit("test:1.2.3.4", 3, 60, client)[0] for _ in range(4)]

        assert results == [True, True, True, False]
        assert windows["test:1.2.3.4"]["count"] == 3

    def test_resumes_count_mirrored_by_another_worker(self):
        windows.clear()
        client = FakeRedis()
        client.values["test:shared"] = "2"
        client.ttl = lambda key: 30

        allowed, count, reset_in = check_rate_limit("test:shared", 3, 60, client)

        assert allowed is True
        assert count == 3
        assert reset_in == 30
        assert check_rate_limit("test:shared", 3, 60, client)[0] is False

    def test_keys_are_independent(self):
        windows.clear()
        client = FakeRedis()

        check_rate_limit("test:a", 1, 60, client)

        assert check_rate_limit("test:b", 1, 60, client)[0] is True
        assert check_rate_limit("test:a", 1, 60, client)[0] is False


@pytest.mark.unit
class TestRedisConnection:
    """Connecting to the limiter backend"""

    def test_failed_connect_is_not_retried_immediately(self, monkeypatch):
        attempts = []

        class DownRedis:
            def ping(self):
                raise redis.ConnectionError("connection refused")

        def from_url(url, **kwargs):
            attempts.append(url)
            return DownRedis()

        monkeypatch.setattr(rate_limiter, "redis_client", None)
        monkeypatch.setattr(rate_limiter, "_redis_failed_at", None)
        monkeypatch.setattr(rate_limiter.redis, "from_url", from_url)

        for _ in range(3):
            with pytest.raises(redis.RedisError):
                rate_limiter.get_redis_client()

        assert len(attempts) == 1

    def test_retries_after_interval(self, monkeypatch):
        attempts = []

        class UpRedis:
            def ping(self):
                return True

        def from_url(url, **kwargs):
            attempts.append(url)
            return UpRedis()

        monkeypatch.setattr(rate_limiter, "redis_client", None)
        monkeypatch.setattr(
            rate_limiter, "_redis_failed_at", time.monotonic() - rate_limiter.REDIS_RETRY_INTERVAL - 1
        )
        monkeypatch.setattr(rate_limiter.redis, "from_url", from_url)

        client = rate_limiter.get_redis_client()

        assert isinstance(client, UpRedis)
        assert len(attempts) == 1
        assert rate_limiter._redis_failed_at is None


def test_root(client):
    assert client.get("/").json()["message"] == "CleanFoss API is running"
