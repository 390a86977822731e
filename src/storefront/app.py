"""NexoShop Storefront FastAPI application.

Serves the catalogue, cart, checkout and order history to shoppers and the
back-office endpoints to administrators. Every request runs inside the
storefront domain context.

The caller's identity is read from the ``X-User-Id`` header and is not
verified here. Deploy the API only behind a trusted gateway that
authenticates the caller, sets ``X-User-Id`` itself and strips any value
sent by the client.

Usage:
    uvicorn storefront.app:app --host 0.0.0.0 --port 8000 --reload
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api import (
    admin_router,
    cart_router,
    catalogue_router,
    checkout_router,
    order_router,
    profile_router,
)
from storefront.api.errors import register_error_handlers
from storefront.domain import storefront
from storefront.utils.logging import add_context, clear_context


@asynccontextmanager
async def lifespan(app: FastAPI):
    # PROTEAN_ENV selects the domain.toml overlay
    storefront.init()
    yield


def create_app(lifespan=lifespan) -> FastAPI:
    app = FastAPI(
        title="NexoShop Storefront API",
        description="Catalogue, cart, checkout and order administration",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the storefront domain context and tag log lines with the request id."""
        clear_context()
        add_context(request_id=request.headers.get("X-Request-Id") or str(uuid.uuid4()), path=request.url.path)
        try:
            with storefront.domain_context():
                response = await call_next(request)
            return response
        finally:
            clear_context()

    register_error_handlers(app)

    app.include_router(catalogue_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(profile_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": storefront.name})

    return app


app = create_app()
