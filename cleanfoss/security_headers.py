"""
Security Headers Middleware for the CleanFoss API

Every JSON response gets a restrictive header set. The booking frontend
talks to Firebase for sign-in and to Stripe for card payments, so the
Content-Security-Policy lets those origins through and nothing else.
"""

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .config import ALLOWED_ORIGINS, IS_PRODUCTION

logger = logging.getLogger(__name__)

STRIPE_ORIGINS = ["https://js.stripe.com", "https://api.stripe.com", "https://hooks.stripe.com"]
FIREBASE_ORIGINS = [
    "https://identitytoolkit.googleapis.com",
    "https://securetoken.googleapis.com",
    "https://*.firebaseapp.com",
]


def get_csp_policy() -> str:
    """Content-Security-Policy for an API that only answers with JSON"""
    frame_ancestors = " ".join(ALLOWED_ORIGINS) or "'none'"
    directives = [
        "default-src 'self'",
        f"frame-ancestors {frame_ancestors}",
        f"script-src 'self' {STRIPE_ORIGINS[0]}",
        f"frame-src 'self' {STRIPE_ORIGINS[0]} {STRIPE_ORIGINS[2]}",
        f"connect-src 'self' {' '.join(STRIPE_ORIGINS[:2] + FIREBASE_ORIGINS)}",
        "img-src 'self' data: https:",
        "base-uri 'none'",
        "form-action 'self'",
    ]
    return "; ".join(directives)


def get_permissions_policy() -> str:
    # Card entry runs inside Stripe's iframe, which needs the payment feature
    features = [
        "camera=()",
        "geolocation=()",
        "microphone=()",
        "usb=()",
        f'payment=(self "{STRIPE_ORIGINS[0]}")',
    ]
    return ", ".join(features)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every response outside exclude_paths"""

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []
        self.csp = get_csp_policy()
        self.permissions = get_permissions_policy()
        logger.debug(f"🔒 CSP policy: {self.csp}")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        path = request.url.path
        if any(path.startswith(excluded) for excluded in self.exclude_paths):
            return response

        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = self.csp
        response.headers["Permissions-Policy"] = self.permissions

        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        # Booking and account data must not be cached by intermediaries
        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"

        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
        return response
