import time
import uuid

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from karma_api.core.config import ReconcileConfig, get_settings
from karma_api.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    not_found_handler,
    validation_exception_handler,
)
from karma_api.core.logging import bind_request_id, configure_logging, get_logger
from karma_api.db.init import init_db
from karma_api.routers import manual_credit, user, webhook
from karma_api.services.reconcile import WebhookReconciler

settings = get_settings()
configure_logging(debug=settings.debug)
log = get_logger(__name__)

app = FastAPI(
    title="Karma Ledger API",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.reconciler = WebhookReconciler(ReconcileConfig.from_settings(settings))


@app.middleware("http")
async def request_id_middleware(request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    bind_request_id(request_id)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    log.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    response.headers["X-Request-ID"] = request_id
    return response


app.add_exception_handler(AppError, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(404, not_found_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Routers
app.include_router(user.router, prefix="/api/user", tags=["user"])
app.include_router(webhook.router, prefix="/api", tags=["payments"])
app.include_router(manual_credit.router, prefix="/api", tags=["payments"])


@app.on_event("startup")
async def startup():
    if settings.sentry_dsn:
        import sentry_sdk
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
        log.info("startup", msg="Sentry enabled")
    if not app.state.reconciler.config.receiving_wallet:
        log.warning("startup", msg="RECEIVING_WALLET not set; webhook payments will be skipped")
    await init_db()
    log.info("startup", msg="DB connected", network=app.state.reconciler.config.network)


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Backend server is running!"


@app.get("/health")
async def health():
    """Health check for load balancers and monitoring."""
    return {"status": "ok"}
