"""
Identity dependencies for FastAPI routes.
"""

from __future__ import annotations

from fastapi import Request

from .service import IdentityService


def get_identity_service(request: Request) -> IdentityService:
    service = getattr(request.app.state, "identity_service", None)
    if service is None:
        raise RuntimeError("IdentityService is not configured. Build the app with create_app().")
    return service
