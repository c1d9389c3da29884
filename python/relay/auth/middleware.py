"""Authentication middleware for FastAPI.

Provides:
- AuthMiddleware: Global middleware running the auth gate on every request
- get_principal: Dependency for accessing the authenticated caller
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match
from starlette.types import ASGIApp

from relay.auth.gate import AuthGate, Principal, extract_credential
from relay.errors import ApiError, ApiErrorCode
from relay.logging import get_logger
from relay.responses import error_response

logger = get_logger(__name__)

AUTHORIZATION_HEADER = "authorization"

# Paths that skip the gate entirely
PUBLIC_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

# Paths that attach a principal when a valid credential is present, but never reject
OPTIONAL_PATHS = {"/api/auth/signup", "/api/auth/login"}


class AuthMiddleware(BaseHTTPMiddleware):
    """Runs the auth gate and attaches the principal to request.state.

    Order of checks:
    1. Skip if public path, CORS preflight, or no route matches
    2. Extract credential (cookie, then bearer header)
    3. Run the gate (optional for signup/login, required elsewhere)
    4. Attach Principal (or None) to request.state.principal
    """

    def __init__(self, app: ASGIApp, gate: AuthGate, cookie_name: str = "authToken"):
        super().__init__(app)
        self.gate = gate
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next) -> JSONResponse:
        """Process the request through auth checks."""
        request.state.principal = None

        if request.url.path in PUBLIC_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        # Unknown routes get the router's 404, not a 401
        if not _has_route(request):
            return await call_next(request)

        credential = extract_credential(
            request.cookies.get(self.cookie_name),
            request.headers.get(AUTHORIZATION_HEADER),
        )
        required = request.url.path not in OPTIONAL_PATHS

        try:
            # Identity lookup is a blocking DB call
            principal = await run_in_threadpool(
                self.gate.authenticate, credential, required=required
            )
        except ApiError as e:
            return self._error_json_response(request, e.code, e.message, e.status_code)
        except Exception:
            logger.exception("auth_gate_failed", request_path=request.url.path)
            return self._error_json_response(
                request, ApiErrorCode.E_INTERNAL, "Internal server error", 500
            )

        request.state.principal = principal
        return await call_next(request)

    def _error_json_response(
        self, request: Request, code: ApiErrorCode, message: str, status_code: int
    ) -> JSONResponse:
        """Create a JSON error response."""
        return JSONResponse(
            status_code=status_code,
            content=error_response(
                code, message, request_id=getattr(request.state, "request_id", None)
            ),
        )


def _has_route(request: Request) -> bool:
    """Whether any app route matches the path (a method mismatch still counts)."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            return True
    return False


def get_principal(request: Request) -> Principal:
    """FastAPI dependency to get the authenticated caller.

    Raises:
        ApiError: If no principal is attached (optional path without a credential).
    """
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return principal
