from __future__ import annotations

import asyncio

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.responses import Response

from accountkit import http
from accountkit.api.dependencies import get_current_account, require_scopes
from accountkit.domain.account import VerifiedToken

from .conftest import CREDS, make_service


def _request(headers: dict[str, str]) -> Request:
    raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def test_get_token_reads_bearer_header():
    assert http.get_token(_request({"Authorization": "Bearer abc.def"}), "example") == "abc.def"


def test_get_token_falls_back_to_named_cookie():
    request = _request({"Cookie": "other=1; example_access_token=from-cookie"})
    assert http.get_token(request, "example") == "from-cookie"


def test_get_token_prefers_bearer_over_cookie():
    request = _request(
        {"Authorization": "Bearer from-header", "Cookie": "example_access_token=from-cookie"}
    )
    assert http.get_token(request, "example") == "from-header"


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Basic dXNlcjpwYXNz"},
        {"Cookie": "someone_else_access_token=abc"},
        {"Authorization": "Bearer "},
    ],
)
def test_get_token_returns_none_without_token(headers):
    assert http.get_token(_request(headers), "example") is None


def test_get_token_accepts_plain_header_mappings():
    assert http.get_token({"AUTHORIZATION": "Bearer t"}, "example") == "t"
    assert http.get_token(Headers({"cookie": "example_access_token=c"}), "example") == "c"


def test_set_cookie_is_session_scoped_and_http_only():
    response = Response()
    http.set_cookie(response, hostname="example.com", token="tok", name="example")

    header = response.headers["set-cookie"]
    lowered = header.lower()
    assert header.startswith("example_access_token=tok")
    assert "path=/" in lowered
    assert "domain=example.com" in lowered
    assert "httponly" in lowered
    assert "expires" not in lowered
    assert "max-age" not in lowered


@pytest.mark.parametrize("kwargs", [{"hostname": "", "token": "t"}, {"hostname": "h", "token": None}])
def test_set_cookie_requires_hostname_and_token(kwargs):
    with pytest.raises(ValueError):
        http.set_cookie(Response(), name="example", **kwargs)


def test_remove_cookie_expires_immediately():
    response = Response()
    http.remove_cookie(response, name="example")

    lowered = response.headers["set-cookie"].lower()
    assert lowered.startswith('example_access_token=""') or lowered.startswith("example_access_token=;")
    assert "max-age=0" in lowered
    assert "expires=" in lowered
    assert "path=/" in lowered


@pytest.fixture
def api_client():
    """Provide a FastAPI test client over an isolated account service."""
    service = make_service()

    app = FastAPI()
    app.state.account_service = service

    @app.get("/me")
    async def me(account: VerifiedToken = Depends(get_current_account)) -> dict:
        return {"key": account.key}

    @app.get("/reports")
    async def reports(account: VerifiedToken = Depends(require_scopes("reports:read"))) -> dict:
        return {"key": account.key}

    @app.post("/session")
    async def session(response: Response) -> dict:
        account = await service.login(dict(CREDS))
        service.set_cookie(response, hostname="testserver.local", token=account.token)
        return {"key": account.key}

    with TestClient(app) as client:
        yield client, service


def test_protected_route_accepts_bearer_token(api_client):
    client, service = api_client
    account = asyncio.run(service.register(dict(CREDS)))

    response = client.get("/me", headers={"Authorization": f"Bearer {account.token}"})

    assert response.status_code == 200
    assert response.json() == {"key": account.key}


def test_protected_route_accepts_cookie(api_client):
    client, service = api_client
    account = asyncio.run(service.register(dict(CREDS)))

    response = client.get("/me", headers={"Cookie": f"example_access_token={account.token}"})

    assert response.status_code == 200


def test_session_route_sets_cookie(api_client):
    client, service = api_client
    asyncio.run(service.register(dict(CREDS)))

    response = client.post("/session")

    assert response.status_code == 200
    assert "example_access_token=" in response.headers["set-cookie"]


def test_protected_route_without_token_is_401(api_client):
    client, _ = api_client

    response = client.get("/me")

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "unauthorized"


def test_protected_route_after_destroy_is_404(api_client):
    client, service = api_client
    account = asyncio.run(service.register(dict(CREDS)))
    asyncio.run(service.destroy(account.key))

    response = client.get("/me", headers={"Authorization": f"Bearer {account.token}"})

    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Account not found"


def test_scoped_route_checks_live_scopes(api_client):
    client, service = api_client
    account = asyncio.run(service.register({**CREDS, "scopes": ["reports:read"]}))
    headers = {"Authorization": f"Bearer {account.token}"}

    assert client.get("/reports", headers=headers).status_code == 200

    asyncio.run(service.update_scopes(account.key, []))
    response = client.get("/reports", headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"]["message"] == "Access denied"
