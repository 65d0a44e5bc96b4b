"""FreshCart FastAPI application.

Web server that processes commands synchronously via HTTP. Every request runs
inside the freshcart domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (handlers fire after each commit)
#   - "production" → event_processing = "async" (handlers fire via Engine)
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from freshcart.domain import freshcart
from freshcart.utils.logging import add_context, clear_context

freshcart.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="FreshCart API",
    description="Grocery orders, fulfillment, pickup/delivery slots and refunds",
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
    """Push the freshcart domain context and bind request details to the log context."""
    clear_context()
    add_context(request_id=request.headers.get("x-request-id", uuid4().hex), path=request.url.path)
    try:
        with freshcart.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from freshcart.api import routers  # noqa: E402
from freshcart.api.errors import register_error_handlers  # noqa: E402

for router in routers:
    app.include_router(router)

register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": freshcart.name})
