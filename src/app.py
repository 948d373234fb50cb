"""Shopu FastAPI application.

Multi-tenant storefront API that processes commands synchronously via HTTP.
Every request runs inside the shopu domain context; the tenant is resolved
per route from the request host.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shopu.config import get_settings
from shopu.domain import shop
from shopu.errors import register_exception_handlers
from shopu.utils.logging import add_context, clear_context, configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it. PROTEAN_ENV
# selects the protean config overlay.
configure_logging()
shop.init()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Shopu API",
    description="Multi-tenant e-commerce backend: storefronts, carts, orders and BOG payments",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the shopu domain context and bind request-scoped log context."""
    clear_context()
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    add_context(request_id=request_id, method=request.method, path=request.url.path)

    with shop.domain_context():
        response = await call_next(request)

    response.headers["X-Request-Id"] = request_id
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from shopu.api.admin import router as admin_router  # noqa: E402
from shopu.api.payments import router as payments_router  # noqa: E402
from shopu.api.storefront import router as storefront_router  # noqa: E402
from shopu.api.tenants import router as tenants_router  # noqa: E402

app.include_router(tenants_router)
app.include_router(storefront_router)
app.include_router(admin_router)
app.include_router(payments_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    settings = get_settings()
    return JSONResponse(
        content={
            "status": "ok",
            "domain": shop.name,
            "environment": settings.ENVIRONMENT,
            "payment_gateway": settings.PAYMENT_GATEWAY,
        }
    )


logger.info("Shopu API ready", payment_gateway=get_settings().PAYMENT_GATEWAY)
