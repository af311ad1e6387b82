"""
Gateway outcome errors.

Each class is one failure kind of the register/login/refresh handlers and
carries the HTTP status it is rendered with.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    status_code: int = 500

    def __init__(self, message: str, *, data: Any = None) -> None:
        self.message = message
        self.data = data
        super().__init__(message)


class InvalidRequest(GatewayError):
    status_code = 400


class UserCreationRejected(GatewayError):
    status_code = 400

    def __init__(self, raw_body: str) -> None:
        super().__init__("User creation failed", data=raw_body)


class InvalidCredentials(GatewayError):
    status_code = 401


class UserNotFound(GatewayError):
    status_code = 404


class UpstreamFailure(GatewayError):
    status_code = 500
