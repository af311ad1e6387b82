from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import Settings, get_settings
from core.keycloak import KeycloakClient
from core.logging import configure_logging
from identity import router as identity_router
from identity.credentials import PasswordGrantAdminCredentials
from identity.errors import GatewayError
from identity.responses import envelope_response
from identity.service import IdentityService

logger = logging.getLogger(__name__)


def build_identity_service(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> IdentityService:
    keycloak = KeycloakClient(
        base_url=settings.keycloak_url,
        realm=settings.realm,
        timeout_s=settings.http_timeout_s,
        transport=transport,
    )
    admin_credentials = PasswordGrantAdminCredentials(
        keycloak=keycloak,
        username=settings.admin_username,
        password=settings.admin_password,
        client_id=settings.admin_client_id,
    )
    return IdentityService(
        keycloak=keycloak,
        admin_credentials=admin_credentials,
        mobile_client_id=settings.mobile_client_id,
    )


async def gateway_error_handler(_: Request, exc: GatewayError) -> JSONResponse:
    return envelope_response(exc.status_code, status=False, message=exc.message, data=exc.data)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(
        "Request validation failed path=%s method=%s errors=%s",
        request.url.path,
        request.method,
        [{key: err.get(key) for key in ("loc", "type", "msg")} for err in exc.errors()],
    )
    return envelope_response(status.HTTP_400_BAD_REQUEST, status=False, message="Invalid request body")


async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = "Method not allowed"
    else:
        message = str(exc.detail)
    response = envelope_response(exc.status_code, status=False, message=message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logger.info("Gateway ready keycloak_url=%s realm=%s", settings.keycloak_url, settings.realm)
        yield

    app = FastAPI(title="Identity Gateway", lifespan=lifespan)
    app.state.identity_service = build_identity_service(settings, transport=transport)

    origins = settings.allowed_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(identity_router.router, tags=["identity"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(app, host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    run()
