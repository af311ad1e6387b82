"""
Identity API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from . import dependencies, schemas
from .responses import envelope_response
from .service import IdentityService

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: schemas.RegisterRequest,
    service: IdentityService = Depends(dependencies.get_identity_service),
) -> JSONResponse:
    result = await service.register(payload)
    return envelope_response(
        status.HTTP_201_CREATED,
        status=True,
        message="User registered successfully",
        data=result,
    )


@router.post("/login")
async def login(
    payload: schemas.LoginRequest,
    service: IdentityService = Depends(dependencies.get_identity_service),
) -> JSONResponse:
    result = await service.login(payload)
    return envelope_response(status.HTTP_200_OK, status=True, message="Login successful.", data=result)


@router.post("/refresh")
async def refresh(
    payload: schemas.RefreshRequest,
    service: IdentityService = Depends(dependencies.get_identity_service),
) -> JSONResponse:
    tokens = await service.refresh(payload)
    return envelope_response(status.HTTP_200_OK, status=True, message="Token refreshed", data=tokens)
