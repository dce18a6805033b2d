# SecurityHeadersMiddleware, ErrorEnvelopeMiddleware, LoginRequiredMiddleware
import logging
import time
import uuid
from urllib.parse import quote
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from fastapi import Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from collage.config import settings
from collage.services.security import SESSION_COOKIE, session_user_id

log = logging.getLogger(__name__)

# Page prefixes that need a signed-in session
PROTECTED_PREFIXES = ("/prompt", "/collage")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "same-origin"
        # Add HSTS in production
        if (settings.APP_ENV or "").strip().lower() == "production":
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"

        # Allow Swagger UI/ReDoc to load assets from jsDelivr
        if request.url.path.startswith(("/docs", "/redoc")):
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "img-src 'self' data: https:; "
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "connect-src 'self';"
            )
        else:
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "img-src 'self' data: blob:; "
                "script-src 'self'; "
                "style-src 'self' 'unsafe-inline'; "
                "connect-src 'self'; "
                "object-src 'none'; "
                "frame-ancestors 'none'; "
                "base-uri 'self';"
            )
        return response


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start = time.time()
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])
        request.state.rid = request_id
        try:
            response: Response = await call_next(request)
        except Exception:
            # Detail stays in the server log, the client gets a generic message
            log.exception("Unhandled error rid=%s %s %s", request_id, request.method, request.url.path)
            response = JSONResponse(status_code=500, content={"detail": "Internal server error"})
        response.headers["x-request-id"] = request_id
        response.headers["server-timing"] = f"total;dur={(time.time() - start) * 1000:.2f}"
        return response


class LoginRequiredMiddleware(BaseHTTPMiddleware):
    """Redirect anonymous visitors of protected pages to the login view."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        path = request.url.path
        if request.method == "GET" and any(
            path == p or path.startswith(p + "/") for p in PROTECTED_PREFIXES
        ):
            if not await session_user_id(request.cookies.get(SESSION_COOKIE)):
                return RedirectResponse(url=f"/login?next={quote(path)}", status_code=307)
        return await call_next(request)
