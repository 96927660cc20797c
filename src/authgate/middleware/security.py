"""Security headers middleware.

Learn: every response gets the baseline headers below. Anything under
/auth/ additionally gets no-store, because those responses carry
access and refresh tokens and must never land in a browser or proxy
cache. HSTS is only meaningful over HTTPS, so it is skipped otherwise.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

AUTH_PATH_MARKER = "/auth/"

BASELINE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

NO_STORE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(BASELINE_HEADERS)
        if AUTH_PATH_MARKER in request.url.path:
            response.headers.update(NO_STORE_HEADERS)
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response
