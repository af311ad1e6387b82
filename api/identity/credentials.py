"""
Admin credential acquisition for the Keycloak admin API.
"""

from __future__ import annotations

from typing import Protocol

from core.keycloak import AdminTokenError, KeycloakClient


class AdminCredentialProvider(Protocol):
    async def admin_token(self) -> str:
        ...


class PasswordGrantAdminCredentials:
    """
    Fetches a fresh admin token with the password grant on every call.
    """

    def __init__(
        self,
        *,
        keycloak: KeycloakClient,
        username: str,
        password: str,
        client_id: str,
    ) -> None:
        self._keycloak = keycloak
        self._username = username
        self._password = password
        self._client_id = client_id

    async def admin_token(self) -> str:
        data = await self._keycloak.request_token(
            client_id=self._client_id,
            grant_type="password",
            username=self._username,
            password=self._password,
        )
        token = data.get("access_token")
        if not isinstance(token, str) or not token:
            raise AdminTokenError("Admin token not found in token response.")
        return token
