"""Security headers middleware.

Learn: Adds standard security headers to every response. Session
cookies make clickjacking and MIME sniffing more than theoretical here:
- X-Content-Type-Options: prevents MIME-type sniffing
- X-Frame-Options: prevents clickjacking
- Referrer-Policy: limits referrer info leakage
- Content-Security-Policy: the API only ever returns JSON, so nothing
  in a response may load scripts or be framed
- Strict-Transport-Security: forces HTTPS (only on HTTPS connections)

Responses from the auth endpoints carry a session token in the body and
a Set-Cookie header, so they are also marked uncacheable.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

API_CSP = "default-src 'none'; frame-ancestors 'none'"
DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, session_prefix: str = "/api/v1/auth/"):
        super().__init__(app)
        self.session_prefix = session_prefix

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        path = request.url.path

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Swagger UI needs its CDN scripts.
        if not path.startswith(DOCS_PATHS):
            response.headers["Content-Security-Policy"] = API_CSP
        if path.startswith(self.session_prefix):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response
