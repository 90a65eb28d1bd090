"""Security headers middleware.

Adds OWASP-recommended HTTP security headers to every response. Responses
under the static storage route get a sandboxing Content-Security-Policy,
since an uploaded SVG may carry script.
"""

from __future__ import annotations

from collections.abc import Sequence

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

STORED_FILE_CSP = "default-src 'none'; img-src 'self' data:; style-src 'unsafe-inline'; sandbox"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Injects security headers into every HTTP response."""

    def __init__(self, app: ASGIApp, sandbox_prefixes: Sequence[str] = ()) -> None:
        super().__init__(app)
        self.sandbox_prefixes = tuple(
            prefix.rstrip("/") + "/" for prefix in sandbox_prefixes if prefix.strip("/")
        )

    async def dispatch(self, request: Request, call_next: object) -> Response:
        response: Response = await call_next(request)  # type: ignore[call-arg]

        # Prevent MIME-sniffing
        response.headers.setdefault("X-Content-Type-Options", "nosniff")

        # Clickjacking protection
        response.headers.setdefault("X-Frame-Options", "DENY")

        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )

        if request.url.path.startswith(self.sandbox_prefixes):
            response.headers.setdefault("Content-Security-Policy", STORED_FILE_CSP)
        else:
            response.headers.setdefault(
                "Content-Security-Policy", "frame-ancestors 'none'; base-uri 'self'"
            )

        # HSTS only when behind TLS (proxy sets X-Forwarded-Proto)
        forwarded_proto = request.headers.get("x-forwarded-proto", "")
        if forwarded_proto == "https":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains",
            )

        return response
