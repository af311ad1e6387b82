"""
Identity API schemas (request/response models).

Wire names are camelCase for request bodies and user fields, snake_case for
tokens, matching what mobile clients already send and read.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(_WireModel):
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str = ""
    phone_number: str = Field(default="", alias="phoneNumber")
    password: str = ""


class LoginRequest(_WireModel):
    email: str = ""
    password: str = ""


class RefreshRequest(_WireModel):
    refresh_token: str = Field(default="", alias="refreshToken")


class UserView(_WireModel):
    id: str | None = None
    username: str | None = None
    email: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str | None = None


class AuthResult(BaseModel):
    user: UserView
    access_token: str
    refresh_token: str | None = None


class Envelope(BaseModel):
    status: bool
    message: str
    data: Any = None
