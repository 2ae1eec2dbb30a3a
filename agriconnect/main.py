# agriconnect/main.py
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from datetime import datetime, timezone
import logging

# Load environment variables as early as possible
load_dotenv()

from .core.config import settings, Settings, INSECURE_DEFAULT_SECRET
from .routers import auth_router, jobs_router, chat_router, ratings_router
from .middleware import RateLimitMiddleware, SecurityMiddleware, LoggingMiddleware, ErrorHandlingMiddleware
from .exceptions import http_exception_handler, validation_exception_handler
from .application.ports.otp_store import OTPStore
from .application.ports.sms_sender import SMSSender
from .application.ports.rate_limiter import RateLimiter
from .application.services.token_service import TokenService
from .infrastructure.otp.memory_store import InMemoryOTPStore
from .infrastructure.otp.redis_store import RedisOTPStore
from .infrastructure.otp.sweeper import start_otp_sweeper, stop_otp_sweeper
from .infrastructure.sms.console_sender import ConsoleSMSSender
from .infrastructure.sms.twilio_sender import TwilioSMSSender
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.persistence.mongo.database import create_client, get_database, init_indexes

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


def build_otp_store(cfg: Settings) -> OTPStore:
    if cfg.OTP_STORE_BACKEND == "redis":
        if not cfg.REDIS_URL:
            raise RuntimeError("REDIS_URL is required when OTP_STORE_BACKEND=redis")
        return RedisOTPStore(url=cfg.REDIS_URL, expiry_minutes=cfg.OTP_EXPIRY_MINUTES)
    return InMemoryOTPStore(expiry_minutes=cfg.OTP_EXPIRY_MINUTES)


def build_sms_sender(cfg: Settings) -> SMSSender:
    if cfg.SMS_PROVIDER == "twilio":
        return TwilioSMSSender(
            account_sid=cfg.TWILIO_ACCOUNT_SID,
            auth_token=cfg.TWILIO_AUTH_TOKEN,
            from_number=cfg.TWILIO_PHONE_NUMBER,
            timeout_seconds=cfg.SMS_SEND_TIMEOUT_SECONDS,
        )
    logger.warning("SMS_PROVIDER is 'console'; OTP codes are written to the log")
    return ConsoleSMSSender()


def build_rate_limiter(cfg: Settings) -> RateLimiter:
    if cfg.REDIS_URL:
        return RedisRateLimiter(cfg.REDIS_URL)
    return InMemoryRateLimiter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Agriconnect API...")
    settings.check_production_secrets()
    if settings.SECRET_KEY == INSECURE_DEFAULT_SECRET:
        logger.warning("JWT_SECRET is not set; using the development signing key")

    app.state.db_init_ok = True
    app.state.db_init_error = None
    client = create_client()
    app.state.mongo_client = client
    app.state.db = get_database(client)
    try:
        await init_indexes(app.state.db)
        logger.info("Database initialized successfully")
    except Exception as e:
        # Do not crash the app; report via health endpoint
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")

    sweeper = start_otp_sweeper(app.state.otp_store, settings.OTP_SWEEP_INTERVAL_SECONDS)
    yield
    # Shutdown
    logger.info("Shutting down Agriconnect API...")
    await stop_otp_sweeper(sweeper)
    client.close()


# Initialize FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

# Process-wide components
app.state.otp_store = build_otp_store(settings)
app.state.sms_sender = build_sms_sender(settings)
app.state.rate_limiter = build_rate_limiter(settings)
app.state.audit_logger = StdAuditLogger()
app.state.token_service = TokenService(
    secret=settings.SECRET_KEY,
    algorithm=settings.ALGORITHM,
    expire_days=settings.TOKEN_EXPIRE_DAYS,
)

# Add custom exception handlers
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Add middleware
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityMiddleware)
app.add_middleware(RateLimitMiddleware)

# GZip compression
app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router)
app.include_router(jobs_router.router)
app.include_router(chat_router.router)
app.include_router(ratings_router.router)


# Health check endpoint
@app.get("/health")
def health_check():
    return {
        "status": "healthy" if getattr(app.state, "db_init_ok", True) else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENV,
        "database": {
            "ok": getattr(app.state, "db_init_ok", True),
            "error": getattr(app.state, "db_init_error", None)
        },
        "auth": {
            "secret_key_configured": bool(settings.SECRET_KEY and settings.SECRET_KEY != INSECURE_DEFAULT_SECRET),
            "jwt_algorithm": settings.ALGORITHM,
            "token_expiry_days": settings.TOKEN_EXPIRE_DAYS,
            "otp_store": settings.OTP_STORE_BACKEND,
            "sms_provider": settings.SMS_PROVIDER,
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("agriconnect.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
