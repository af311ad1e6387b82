"""
Identity business logic.

Each operation is a linear pass over Keycloak calls. Failures are raised as
`errors.GatewayError` subclasses and rendered into the envelope by the app.
"""

from __future__ import annotations

import logging
from typing import Any

from core.keycloak import (
    KeycloakClient,
    KeycloakError,
    KeycloakResponseError,
    MalformedUpstreamResponse,
)

from . import errors, schemas
from .credentials import AdminCredentialProvider

logger = logging.getLogger(__name__)


def _token_pair(data: dict[str, Any]) -> schemas.TokenPair | None:
    access_token = data.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        return None

    refresh_token = data.get("refresh_token")
    if refresh_token is not None and not isinstance(refresh_token, str):
        raise MalformedUpstreamResponse("refresh_token is not a string.")
    return schemas.TokenPair(access_token=access_token, refresh_token=refresh_token)


def _optional_str(record: dict[str, Any], key: str) -> str | None:
    value = record.get(key)
    if value is not None and not isinstance(value, str):
        raise MalformedUpstreamResponse(f"User field {key!r} is not a string.")
    return value


def _user_view(record: dict[str, Any]) -> schemas.UserView:
    user_id = record.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise MalformedUpstreamResponse("User record has no id.")
    return schemas.UserView(
        id=user_id,
        username=_optional_str(record, "username"),
        email=_optional_str(record, "email"),
        first_name=_optional_str(record, "firstName"),
        last_name=_optional_str(record, "lastName"),
    )


def user_representation(payload: schemas.RegisterRequest) -> dict[str, Any]:
    return {
        "enabled": True,
        "username": payload.email,
        "email": payload.email,
        "firstName": payload.first_name,
        "lastName": payload.last_name,
        "attributes": {"phone_number": payload.phone_number},
        "credentials": [
            {
                "type": "password",
                "value": payload.password,
                "temporary": False,
            }
        ],
    }


class IdentityService:
    def __init__(
        self,
        *,
        keycloak: KeycloakClient,
        admin_credentials: AdminCredentialProvider,
        mobile_client_id: str,
    ) -> None:
        self.keycloak = keycloak
        self.admin_credentials = admin_credentials
        self.mobile_client_id = mobile_client_id

    async def _user_tokens(self, email: str, password: str) -> schemas.TokenPair | None:
        data = await self.keycloak.request_token(
            client_id=self.mobile_client_id,
            grant_type="password",
            username=email,
            password=password,
        )
        return _token_pair(data)

    async def _lookup_user_id(self, email: str) -> str | None:
        try:
            admin_token = await self.admin_credentials.admin_token()
            users = await self.keycloak.find_users_by_email(admin_token=admin_token, email=email)
        except KeycloakError as exc:
            logger.warning("user_id_lookup_failed email=%s error=%s", email, exc)
            return None

        if not users:
            logger.warning("user_id_lookup_empty email=%s", email)
            return None
        user_id = users[0].get("id")
        return user_id if isinstance(user_id, str) else None

    async def register(self, payload: schemas.RegisterRequest) -> schemas.AuthResult:
        logger.info("register_started email=%s", payload.email)

        try:
            admin_token = await self.admin_credentials.admin_token()
        except KeycloakError as exc:
            logger.warning("admin_token_failed op=register error=%s", exc)
            raise errors.UpstreamFailure("Failed to obtain admin token") from exc

        try:
            await self.keycloak.create_user(
                admin_token=admin_token,
                representation=user_representation(payload),
            )
        except KeycloakResponseError as exc:
            logger.warning("user_creation_rejected email=%s status=%s", payload.email, exc.status_code)
            raise errors.UserCreationRejected(exc.body) from exc
        except KeycloakError as exc:
            logger.warning("user_creation_failed email=%s error=%s", payload.email, exc)
            raise errors.UpstreamFailure("Failed to create user") from exc

        # The account exists from here on; later failures leave it in place.
        try:
            tokens = await self._user_tokens(payload.email, payload.password)
        except KeycloakError as exc:
            logger.warning("post_register_login_failed email=%s error=%s", payload.email, exc)
            raise errors.UpstreamFailure("User login after registration failed") from exc
        if tokens is None:
            logger.warning("post_register_login_failed email=%s error=no access_token", payload.email)
            raise errors.UpstreamFailure("User login after registration failed")

        user = schemas.UserView(
            id=await self._lookup_user_id(payload.email),
            username=payload.email,
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
        )
        logger.info("register_succeeded email=%s user_id=%s", payload.email, user.id)
        return schemas.AuthResult(
            user=user,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )

    async def login(self, payload: schemas.LoginRequest) -> schemas.AuthResult:
        logger.info("login_started email=%s", payload.email)
        if not payload.email or not payload.password:
            raise errors.InvalidCredentials("Invalid credentials.")

        try:
            tokens = await self._user_tokens(payload.email, payload.password)
        except KeycloakError as exc:
            logger.warning("login_token_request_failed email=%s error=%s", payload.email, exc)
            raise errors.UpstreamFailure("Login request failed") from exc
        if tokens is None:
            raise errors.InvalidCredentials("Invalid credentials.")

        try:
            admin_token = await self.admin_credentials.admin_token()
        except KeycloakError as exc:
            logger.warning("admin_token_failed op=login error=%s", exc)
            raise errors.UpstreamFailure("Failed to get admin token") from exc

        try:
            users = await self.keycloak.find_users_by_email(
                admin_token=admin_token,
                email=payload.email,
            )
            user = _user_view(users[0]) if users else None
        except KeycloakError as exc:
            logger.warning("user_fetch_failed email=%s error=%s", payload.email, exc)
            raise errors.UpstreamFailure("Failed to fetch user data") from exc

        if user is None:
            # Authenticated by Keycloak yet absent from the admin query.
            logger.warning("login_user_missing email=%s", payload.email)
            raise errors.UserNotFound("User not found")

        return schemas.AuthResult(
            user=user,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )

    async def refresh(self, payload: schemas.RefreshRequest) -> schemas.TokenPair:
        incoming_refresh = payload.refresh_token or ""
        if not incoming_refresh.strip():
            raise errors.InvalidRequest("Invalid refresh token")

        try:
            data = await self.keycloak.request_token(
                client_id=self.mobile_client_id,
                grant_type="refresh_token",
                refresh_token=incoming_refresh,
            )
            tokens = _token_pair(data)
        except KeycloakError as exc:
            logger.warning("refresh_request_failed error=%s", exc)
            raise errors.UpstreamFailure("Refresh request failed") from exc

        if tokens is None:
            raise errors.InvalidCredentials("Invalid refresh token")
        return tokens
