import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import get_current_user
from .config import settings
from .database import Base, engine
from .notify import Mailer
from .storage import build_storage
from .routes import (
    auth,
    users,
    user_activity,
    flight_records,
    stock_inventory,
    incoming_inspections,
    airport_ids,
    sdr_reports,
    sms_reports,
    technician_training,
    document_storage,
    technical_queries,
    temperature_control,
    temperature_humidity_config,
    manuals,
    defect_analytics,
    fleet_analytics,
)

logger = logging.getLogger(__name__)

REQUEST_COUNT = Counter("request_count", "Total requests", ["method", "endpoint"])
REQUEST_LATENCY = Histogram(
    "request_latency_seconds", "Request latency", ["endpoint"]
)

ROUTERS = (
    auth.router,
    users.router,
    user_activity.router,
    flight_records.router,
    stock_inventory.router,
    incoming_inspections.router,
    airport_ids.router,
    sdr_reports.router,
    sms_reports.router,
    technician_training.router,
    document_storage.router,
    technical_queries.router,
    temperature_control.router,
    temperature_humidity_config.router,
    manuals.router,
    defect_analytics.router,
    fleet_analytics.router,
)

# reachable without a session cookie
PUBLIC_ROUTES = {
    ("POST", "/api/register"),
    ("POST", "/api/verify"),
    ("POST", "/api/resend-pin"),
    ("POST", "/api/signin"),
    ("POST", "/api/signout"),
    ("POST", "/api/sms-reports"),
    ("GET", "/api/technical-queries/{query_id}/vote"),
}


def _error(status_code: int, message, headers=None) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=status_code, headers=headers)


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, exc.detail, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
        return _error(400, f"Invalid {field}: {first.get('msg', 'invalid value')}")

    @app.exception_handler(RateLimitExceeded)
    async def rate_limited(request: Request, exc: RateLimitExceeded):
        return _error(429, "Too many requests, please try again later")

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")


def audit_routes(app: FastAPI):
    for route in app.routes:
        if not isinstance(route, APIRoute) or not route.path.startswith("/api"):
            continue
        calls = [dep.call for dep in route.dependant.dependencies]
        if get_current_user in calls:
            continue
        public = any((method, route.path) in PUBLIC_ROUTES for method in route.methods)
        if not public:
            raise RuntimeError(f"Route {route.path} missing authentication")


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn, integrations=[FastApiIntegration()])

    app = FastAPI(title="MRO Logix API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.limiter = auth.limiter
    if not settings.testing:
        app.add_middleware(SlowAPIMiddleware)

    app.state.storage = build_storage(settings.storage)
    app.state.mailer = Mailer(settings.mail, outbox=[] if settings.testing else None)

    @app.middleware("http")
    async def record_metrics(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        route = request.scope.get("route")
        endpoint = route.path if route else request.url.path
        REQUEST_COUNT.labels(request.method, endpoint).inc()
        REQUEST_LATENCY.labels(endpoint).observe(time.time() - start)
        return response

    @app.get("/metrics")
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    register_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)
    audit_routes(app)
    return app


app = create_app()
