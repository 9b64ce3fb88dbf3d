# billing_gateway/main.py
from __future__ import annotations
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from billing_gateway.core.logger import setup_logging
from billing_gateway.core.middleware import RequestContextMiddleware
from billing_gateway.core.security import mint_dev_token
from billing_gateway.core.settings import settings
from billing_gateway.payments.errors import RevstackError
from billing_gateway.api import (
    health,
    providers,
    webhooks,
)

setup_logging()
log = structlog.get_logger(__name__)

app = FastAPI(title=settings.APP_NAME, version="1.0.0")

# --- CORS ---
allow_origins = ["*"] if settings.CORS_ORIGINS == "*" else [o.strip() for o in settings.CORS_ORIGINS.split(",")]
allow_methods = ["*"] if settings.CORS_ALLOW_METHODS == "*" else [m.strip() for m in settings.CORS_ALLOW_METHODS.split(",")]
allow_headers = ["*"] if settings.CORS_ALLOW_HEADERS == "*" else [h.strip() for h in settings.CORS_ALLOW_HEADERS.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=allow_methods,
    allow_headers=allow_headers,
)

# --- Trace id / idempotency key binding ---
app.add_middleware(RequestContextMiddleware)

# --- Routers ---
app.include_router(health.router)
app.include_router(providers.router)
app.include_router(webhooks.router)


@app.exception_handler(RevstackError)
async def revstack_error_handler(request: Request, exc: RevstackError):
    log.warning("request_failed", code=exc.code.value, provider=exc.provider, message=exc.message)
    return JSONResponse({"error": exc.to_dict()}, status_code=exc.status_code)


# --- Dev-only token minting ---
if settings.DEV_MODE:
    from fastapi import APIRouter, Query
    dev_auth = APIRouter(prefix="/auth", tags=["Auth (dev)"])

    @dev_auth.get("/dev-token")
    def get_dev_token(sub: str = Query(default=None), ttl: int = Query(default=3600)):
        """
        Mint a short-lived admin JWT for local testing.
        """
        token = mint_dev_token(sub=sub, ttl_seconds=ttl)
        return {"token": token, "expiresIn": ttl}

    app.include_router(dev_auth)
