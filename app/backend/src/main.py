"""Entrypoint for the FastAPI application."""

import os
from dotenv import load_dotenv

# Load .env locally only (deployments inject env vars)
env_path = os.path.join(os.path.dirname(__file__), "../.env")
if os.path.exists(env_path):
    load_dotenv(dotenv_path=os.path.abspath(env_path))

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import (
    auth,
    health,
    reimbursement,
    request_management,
    requests,
    users,
)
from .core.errors import PortalError, http_error_handler, portal_error_handler
from .core.logging import configure_logging


async def _request_validation_handler(
    _: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request payload",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Ombro Amigo", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    app.include_router(health.router, prefix="/api")
    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(reimbursement.router, prefix="/api")
    app.include_router(requests.router, prefix="/api")
    app.include_router(request_management.router, prefix="/api")

    return app


app = create_app()
