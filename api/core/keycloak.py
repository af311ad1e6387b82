"""
Keycloak HTTP client helpers.

Used endpoints:
- POST /realms/{realm}/protocol/openid-connect/token  -> {"access_token": "...", "refresh_token": "..."}
- POST /admin/realms/{realm}/users                    -> 201, empty body
- GET  /admin/realms/{realm}/users?email=...           -> [{"id": "...", "username": "...", ...}]

Every call opens its own short-lived AsyncClient; nothing is pooled.
"""

from __future__ import annotations

from typing import Any

import httpx


# Keycloak failures are explicit and separable from other runtime errors.
class KeycloakError(RuntimeError):
    pass


class KeycloakResponseError(KeycloakError):
    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Keycloak request failed: {status_code} {body[:500]}")


class MalformedUpstreamResponse(KeycloakError):
    pass


class AdminTokenError(KeycloakError):
    pass


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise KeycloakError("KEYCLOAK_URL is empty.")
    return base_url.rstrip("/")


def _is_success(resp: httpx.Response) -> bool:
    return 200 <= resp.status_code < 300


class KeycloakClient:
    """
    Thin async wrapper over one realm's token and admin user endpoints.

    `transport` lets callers swap the network layer (tests use
    `httpx.MockTransport`).
    """

    def __init__(
        self,
        *,
        base_url: str,
        realm: str,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = _normalize_base_url(base_url)
        self.realm = (realm or "").strip()
        if not self.realm:
            raise KeycloakError("REALM is empty.")
        self.timeout_s = timeout_s
        self._transport = transport

    @property
    def token_path(self) -> str:
        return f"/realms/{self.realm}/protocol/openid-connect/token"

    @property
    def users_path(self) -> str:
        return f"/admin/realms/{self.realm}/users"

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                return await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise KeycloakError(f"Keycloak {method} {path} failed: {exc}") from exc

    async def request_token(self, **form: str) -> dict[str, Any]:
        """
        POST a form to the token endpoint and return the decoded JSON object.

        Error statuses are not raised: Keycloak answers rejected grants with a
        JSON object that simply lacks `access_token`.
        """
        resp = await self._send("POST", self.token_path, data=form)
        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedUpstreamResponse(
                f"Token endpoint returned non-JSON body (status {resp.status_code})."
            ) from exc
        if not isinstance(data, dict):
            raise MalformedUpstreamResponse("Token endpoint returned a non-object body.")
        return data

    async def create_user(self, *, admin_token: str, representation: dict[str, Any]) -> None:
        resp = await self._send(
            "POST",
            self.users_path,
            json=representation,
            headers={"Authorization": f"Bearer {admin_token}"},
        )
        if not _is_success(resp):
            raise KeycloakResponseError(resp.status_code, resp.text)

    async def find_users_by_email(self, *, admin_token: str, email: str) -> list[dict[str, Any]]:
        resp = await self._send(
            "GET",
            self.users_path,
            params={"email": email, "exact": "true"},
            headers={"Authorization": f"Bearer {admin_token}"},
        )
        if not _is_success(resp):
            raise KeycloakResponseError(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedUpstreamResponse("User query returned non-JSON body.") from exc
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise MalformedUpstreamResponse("User query returned a non-array body.")
        return data
