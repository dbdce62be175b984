import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root wherever uvicorn is started from
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bassnote.api.purchase import router as purchase_router
from bassnote.core.config import cors_origins_list, is_stripe_configured, settings
from bassnote.core.database import check_connection, engine, init_db
from bassnote.core.errors import PurchaseFlowError
from bassnote.core.rate_limit import limiter
from bassnote.logging import setup_logging
from bassnote.services.entitlements import build_entitlement_store
from bassnote.services.payments import build_payment_provider

setup_logging(level=logging.INFO)
log = logging.getLogger("bassnote")

STATIC_DIR = _PROJ_ROOT / "static"
# Also try the working directory (uvicorn started elsewhere)
if not STATIC_DIR.is_dir():
    STATIC_DIR = Path.cwd() / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Memory backend: no database is needed to serve requests
    if settings.entitlement_backend == "database":
        try:
            init_db(engine)
        except SQLAlchemyError as e:
            log.error("Database init failed, store calls will fail until it is reachable: %s", e)
        if check_connection(engine):
            log.info("Database connected: %s", engine.url.render_as_string(hide_password=True))
    app.state.entitlement_store = build_entitlement_store(settings, engine)
    app.state.payment_provider = build_payment_provider(settings)
    log.info(
        "Entitlement backend: %s, Stripe configured: %s",
        settings.entitlement_backend,
        "yes" if is_stripe_configured() else "NO (set STRIPE_SECRET_KEY in .env)",
    )
    yield
    log.info("Application shutting down...")


app = FastAPI(
    title="Bass Note Master API",
    description="Static page, Stripe checkout and Pro entitlements",
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, detail: str, **extra) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": detail, "status_code": status_code, **extra}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(PurchaseFlowError)
def purchase_flow_error_handler(request: Request, exc: PurchaseFlowError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(
            "%s: path=%s message=%s detail=%s",
            type(exc).__name__,
            request.url.path,
            exc.message,
            exc.detail,
        )
    return _error_response(request, exc.status_code, exc.message, success=False)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning("Rate limit exceeded: path=%s limit=%s", request.url.path, exc.detail)
    return _error_response(request, 429, "Too many requests")


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.warning(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    first = errs[0].get("msg") if errs else None
    # ctx may hold exception instances that are not JSON serializable
    detail = jsonable_encoder([{k: v for k, v in e.items() if k != "ctx"} for e in errs])
    return _error_response(request, 422, first or "Invalid request.", detail=detail)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc)
    return _error_response(request, 500, "Internal server error.", success=False)


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(purchase_router)

if STATIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/health")
def health():
    return {
        "status": "ok",
        "database": "ok" if check_connection(engine) else "error",
        "entitlement_backend": settings.entitlement_backend,
        "stripe_configured": is_stripe_configured(),
    }


@app.get("/", include_in_schema=False)
def index():
    index_file = STATIC_DIR / "index.html"
    if index_file.is_file():
        return FileResponse(str(index_file), media_type="text/html; charset=utf-8")
    return {"status": "ready", "service": "bassnote-api", "message": "static/index.html not found. Run from the project root: uvicorn bassnote.main:app --reload"}
