from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from hotelpay.config import settings
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from hotelpay.db.session import engine
from hotelpay.exceptions import GatewayRequestError, Unauthenticated
from hotelpay.logging_setup import setup_logging, TRACE_ID_CTX
from hotelpay.modules.bookings.router import router as bookings_router
from hotelpay.modules.payments.router import router as payments_router
import logging
import uuid
import sentry_sdk
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# initialize logging and Sentry
setup_logging(settings.LOG_LEVEL, app_name=settings.APP_NAME)
if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN)
    app.add_middleware(SentryAsgiMiddleware)


@app.middleware("http")
async def add_trace_id(request: Request, call_next):
    trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
    TRACE_ID_CTX.set(trace_id)
    response = await call_next(request)
    response.headers["X-Trace-Id"] = trace_id
    return response


@app.exception_handler(GatewayRequestError)
async def gateway_error_handler(request: Request, exc: GatewayRequestError):
    return JSONResponse(status_code=502, content={"message": exc.description})


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    return JSONResponse(status_code=401, content={"message": "Invalid signature"})


app.include_router(payments_router, prefix="/payments")
app.include_router(bookings_router, prefix="/bookings")


@app.get("/")
async def root():
    return {"app": settings.APP_NAME, "status": "ok"}


@app.get("/metrics")
async def metrics():
    content = generate_latest()
    return Response(content=content, media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/ready")
async def ready():
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Readiness check failed")
        return Response(status_code=503, content="database unavailable")
    return {"status": "ready"}
