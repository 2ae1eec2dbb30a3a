# agriconnect/middleware.py
import time
import logging
import threading
from collections import defaultdict

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .core.config import settings
from .exceptions import create_error_response

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, rate_limit: int = None):
        super().__init__(app)
        self.requests = defaultdict(list)
        self.rate_limit = rate_limit if rate_limit is not None else settings.RATE_LIMIT_PER_MINUTE
        self._lock = threading.Lock()
        self._last_prune = 0.0

    def prune(self, now: float) -> None:
        """Forget clients with no request inside the window. Caller holds the lock."""
        stale = [ip for ip, times in self.requests.items() if not times or now - times[-1] >= WINDOW_SECONDS]
        for ip in stale:
            del self.requests[ip]
        self._last_prune = now

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"

        current_time = time.time()
        with self._lock:
            if current_time - self._last_prune >= WINDOW_SECONDS:
                self.prune(current_time)
            # Drop requests older than one minute
            recent = [t for t in self.requests[client_ip] if current_time - t < WINDOW_SECONDS]
            if len(recent) >= self.rate_limit:
                self.requests[client_ip] = recent
                limited = True
            else:
                recent.append(current_time)
                self.requests[client_ip] = recent
                limited = False

        if limited:
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            return JSONResponse(
                status_code=429,
                content=create_error_response("Rate limit exceeded. Please try again later."),
            )

        return await call_next(request)


class SecurityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request: {request.method} {request.url.path} from {client_host}")

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(f"Response: {response.status_code} in {duration:.3f}s")

        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled error: {str(e)}", exc_info=True)

            message = f"Internal server error: {str(e)}" if settings.DEBUG else "Internal server error"
            return JSONResponse(status_code=500, content=create_error_response(message))
