"""Tests for the POST /api/v1/auth/login endpoint."""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from backend.app.api.deps import get_login_service, login_limiter
from backend.app.core.security import CredentialHasher
from backend.app.main import app
from backend.app.middleware.rate_limit import InMemoryRateLimiter
from backend.app.models.user import UserStatus
from backend.app.services.auth.login import LoginService
from backend.app.services.auth.types import LoginResult
from backend.tests.conftest import make_account
from backend.tests.fakes import InMemoryAccountStore, InMemoryAttemptLedger

LOGIN_URL = "/api/v1/auth/login"


@pytest.fixture()
def client(service: LoginService) -> Generator[TestClient, None, None]:
    """TestClient whose login route runs against the in-memory stores."""
    app.dependency_overrides[get_login_service] = lambda: service
    login_limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    login_limiter.reset()


class TestLoginEndpoint:
    def test_success_body(
        self,
        client: TestClient,
        accounts: InMemoryAccountStore,
        hasher: CredentialHasher,
    ) -> None:
        accounts.add(make_account("carlos", hasher.hash("secret123"), business_id=4, role_id=7))
        resp = client.post(LOGIN_URL, json={"alias": "carlos", "secret": "secret123"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["account"]["alias"] == "carlos"
        assert data["account"]["businessId"] == 4
        assert "credential" not in data["account"]
        assert "hashedPassword" not in data["account"]
        assert data["authorization"] == {"alias": "carlos", "businessId": 4, "roleId": 7}

    def test_password_field_accepted(
        self, client: TestClient, accounts: InMemoryAccountStore
    ) -> None:
        accounts.add(make_account("ana", "plain123"))
        resp = client.post(LOGIN_URL, json={"alias": "ana", "password": "plain123"})
        assert resp.status_code == 200

    @pytest.mark.parametrize(
        "body",
        [{}, {"alias": "carlos"}, {"secret": "x"}, {"alias": "", "secret": ""}],
    )
    def test_missing_credentials_is_400(self, client: TestClient, body: dict) -> None:
        resp = client.post(LOGIN_URL, json=body)
        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "errorKind": "MISSING_CREDENTIALS",
            "message": "Alias and password are required",
        }

    def test_invalid_credentials_is_401(self, client: TestClient) -> None:
        resp = client.post(LOGIN_URL, json={"alias": "maria", "secret": "x"})
        assert resp.status_code == 401
        assert resp.json()["errorKind"] == "INVALID_CREDENTIALS"

    def test_blocked_is_403(self, client: TestClient, accounts: InMemoryAccountStore) -> None:
        accounts.add(make_account("luis", "pw", status=UserStatus.BLOCKED))
        resp = client.post(LOGIN_URL, json={"alias": "luis", "secret": "pw"})
        assert resp.status_code == 403
        assert resp.json()["errorKind"] == "USER_BLOCKED"

    def test_inactive_is_403(self, client: TestClient, accounts: InMemoryAccountStore) -> None:
        accounts.add(make_account("eva", "pw", status=UserStatus.INACTIVE))
        resp = client.post(LOGIN_URL, json={"alias": "eva", "secret": "pw"})
        assert resp.status_code == 403
        assert resp.json()["errorKind"] == "USER_INACTIVE"

    def test_store_failure_is_500_without_detail(
        self, client: TestClient, accounts: InMemoryAccountStore
    ) -> None:
        accounts.fail_on.add("find_by_alias")
        resp = client.post(LOGIN_URL, json={"alias": "ana", "secret": "pw"})
        assert resp.status_code == 500
        body = resp.json()
        assert body["errorKind"] == "INTERNAL_ERROR"
        assert "connection" not in body["message"]

    def test_lockout_over_http(
        self,
        client: TestClient,
        accounts: InMemoryAccountStore,
        ledger: InMemoryAttemptLedger,
        hasher: CredentialHasher,
    ) -> None:
        accounts.add(make_account("carlos", hasher.hash("secret123")))
        codes = [
            client.post(LOGIN_URL, json={"alias": "carlos", "secret": "wrong"}).status_code
            for _ in range(3)
        ]
        assert codes == [401, 401, 401]
        resp = client.post(LOGIN_URL, json={"alias": "carlos", "secret": "secret123"})
        assert resp.status_code == 403
        assert ledger.records["carlos"].failure_count == 3


class TestLoginRateLimit:
    def test_too_many_attempts_is_429(self, client: TestClient) -> None:
        app.dependency_overrides[login_limiter] = InMemoryRateLimiter(
            window_seconds=60, max_attempts=2
        )
        for _ in range(2):
            assert client.post(LOGIN_URL, json={"alias": "x", "secret": "y"}).status_code == 401
        resp = client.post(LOGIN_URL, json={"alias": "x", "secret": "y"})
        assert resp.status_code == 429
        assert "Retry-After" in resp.headers


class _NoKindService:
    async def login(self, alias: str, secret: str) -> LoginResult:
        return LoginResult(success=False)


class TestMalformedResult:
    def test_failure_without_kind_is_500(self) -> None:
        app.dependency_overrides[get_login_service] = lambda: _NoKindService()
        login_limiter.reset()
        try:
            with TestClient(app) as c:
                resp = c.post(LOGIN_URL, json={"alias": "ana", "secret": "pw"})
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["errorKind"] == "INTERNAL_ERROR"
        assert body["message"]


def test_run_serves_app_with_configured_address(monkeypatch: pytest.MonkeyPatch) -> None:
    import uvicorn

    from backend.app import main

    calls: list[tuple[tuple, dict]] = []
    monkeypatch.setattr(uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    monkeypatch.setattr(main.settings, "HOST", "0.0.0.0")
    monkeypatch.setattr(main.settings, "PORT", 8123)

    main.run()

    assert calls == [(("backend.app.main:app",), {"host": "0.0.0.0", "port": 8123})]
