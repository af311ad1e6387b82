"""
In-memory Keycloak stand-in served through httpx.MockTransport.
"""

from __future__ import annotations

import json
import uuid
from urllib.parse import parse_qsl

import httpx
import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from main import create_app

REALM = "test-realm"
BASE_URL = "http://keycloak.test"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-secret"
ADMIN_CLIENT_ID = "admin-cli"
MOBILE_CLIENT_ID = "mobile-app"


class FakeKeycloak:
    def __init__(self) -> None:
        self.users: dict[str, dict] = {}
        self.passwords: dict[str, str] = {}
        self.admin_tokens: set[str] = set()
        self.refresh_tokens: set[str] = set()
        self.requests: list[httpx.Request] = []

        self.admin_login_broken = False
        self.issue_tokens_for_anyone = False
        self.unreachable = False

    def _json(self, status_code: int, payload) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    def _user_pair(self) -> dict:
        refresh = f"refresh-{uuid.uuid4()}"
        self.refresh_tokens.add(refresh)
        return {"access_token": f"access-{uuid.uuid4()}", "refresh_token": refresh, "token_type": "Bearer"}

    def _is_admin(self, request: httpx.Request) -> bool:
        auth = request.headers.get("Authorization", "")
        return auth.startswith("Bearer ") and auth[len("Bearer "):] in self.admin_tokens

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = dict(parse_qsl(request.content.decode()))
        grant_type = form.get("grant_type")
        client_id = form.get("client_id")

        if grant_type == "password" and client_id == ADMIN_CLIENT_ID:
            if self.admin_login_broken:
                return self._json(401, {"error": "invalid_grant"})
            if form.get("username") == ADMIN_USERNAME and form.get("password") == ADMIN_PASSWORD:
                token = f"admin-{uuid.uuid4()}"
                self.admin_tokens.add(token)
                return self._json(200, {"access_token": token})
            return self._json(401, {"error": "invalid_grant"})

        if grant_type == "password" and client_id == MOBILE_CLIENT_ID:
            email = form.get("username", "")
            if self.issue_tokens_for_anyone or (
                email in self.passwords and self.passwords[email] == form.get("password")
            ):
                return self._json(200, self._user_pair())
            return self._json(401, {"error": "invalid_grant", "error_description": "Invalid user credentials"})

        if grant_type == "refresh_token" and client_id == MOBILE_CLIENT_ID:
            token = form.get("refresh_token")
            if token in self.refresh_tokens:
                self.refresh_tokens.discard(token)
                return self._json(200, self._user_pair())
            return self._json(400, {"error": "invalid_grant", "error_description": "Invalid refresh token"})

        return self._json(400, {"error": "unauthorized_client"})

    def _create_user(self, request: httpx.Request) -> httpx.Response:
        if not self._is_admin(request):
            return self._json(401, {"error": "HTTP 401 Unauthorized"})
        body = json.loads(request.content)
        email = body["email"]
        if email in self.users:
            return self._json(409, {"errorMessage": "User exists with same username"})

        user_id = str(uuid.uuid4())
        self.users[email] = {
            "id": user_id,
            "username": body["username"],
            "email": email,
            "firstName": body.get("firstName"),
            "lastName": body.get("lastName"),
            "attributes": {k: [v] for k, v in body.get("attributes", {}).items()},
        }
        self.passwords[email] = body["credentials"][0]["value"]
        return httpx.Response(201, headers={"Location": f"{BASE_URL}/admin/realms/{REALM}/users/{user_id}"})

    def _query_users(self, request: httpx.Request) -> httpx.Response:
        if not self._is_admin(request):
            return self._json(401, {"error": "HTTP 401 Unauthorized"})
        email = request.url.params.get("email", "")
        user = self.users.get(email)
        return self._json(200, [user] if user else [])

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        if path == f"/realms/{REALM}/protocol/openid-connect/token" and request.method == "POST":
            return self._token(request)
        if path == f"/admin/realms/{REALM}/users" and request.method == "POST":
            return self._create_user(request)
        if path == f"/admin/realms/{REALM}/users" and request.method == "GET":
            return self._query_users(request)
        return self._json(404, {"error": "not found"})


@pytest.fixture
def settings() -> Settings:
    return Settings(
        KEYCLOAK_URL=BASE_URL,
        REALM=REALM,
        ADMIN_USERNAME=ADMIN_USERNAME,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        ADMIN_CLIENT_ID=ADMIN_CLIENT_ID,
        MOBILE_CLIENT_ID=MOBILE_CLIENT_ID,
        CORS_ALLOWED_ORIGINS="",
    )


@pytest.fixture
def keycloak() -> FakeKeycloak:
    return FakeKeycloak()


@pytest.fixture
def client(settings: Settings, keycloak: FakeKeycloak) -> TestClient:
    app = create_app(settings, transport=httpx.MockTransport(keycloak.handle))
    return TestClient(app)


@pytest.fixture
def registration() -> dict:
    return {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "phoneNumber": "+905551112233",
        "password": "S3cure!pass",
    }
