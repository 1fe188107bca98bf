from typing import List, Optional
from fastapi import Request, HTTPException, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from clerk_backend_api import Clerk
from clerk_backend_api.security.types import AuthenticateRequestOptions
from httpx import Request as HttpxRequest
from app.core.config import settings
from app.core.logger import get_logger

logger = get_logger("clerk_auth_middleware")

DEVELOPMENT_USER_HEADER = "X-Development-User"

whitelisted_routes = [
    "/docs", "/openapi.json", "/redoc", "/favicon.ico",
    "/api/v1/health",
]


class ClerkAuthMiddleware(BaseHTTPMiddleware):
    """Resolves the caller's user id and stores it on request.state.user_id.

    Order: local backend (single implicit user), development header, Clerk JWT.
    """

    def __init__(self, app, whitelisted_routes: List[str] = None):
        super().__init__(app)
        self.whitelisted_routes = whitelisted_routes or []
        self._clerk_sdk: Optional[Clerk] = None

    @property
    def clerk_sdk(self) -> Clerk:
        if self._clerk_sdk is None:
            self._clerk_sdk = Clerk(bearer_auth=settings.CLERK_SECRET_KEY)
        return self._clerk_sdk

    def _is_whitelisted(self, path: str) -> bool:
        """Check if the route is whitelisted (public)"""
        if path == "/":
            return True
        for route in self.whitelisted_routes:
            if path.startswith(route):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        if self._is_whitelisted(request.url.path):
            return await call_next(request)

        # Skip authentication for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        if settings.USES_LOCAL_STORE:
            request.state.user_id = settings.LOCAL_USER_ID
            return await call_next(request)

        dev_user = request.headers.get(DEVELOPMENT_USER_HEADER)
        if dev_user and settings.IS_DEVELOPMENT:
            logger.debug(f"Development user override: {dev_user}")
            request.state.user_id = dev_user
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            logger.warning(f"Missing or invalid Authorization header for: {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Missing or invalid authorization token"}
            )

        try:
            httpx_request = HttpxRequest(
                method=request.method,
                url=str(request.url),
                headers=dict(request.headers)
            )
            request_state = self.clerk_sdk.authenticate_request(
                httpx_request,
                AuthenticateRequestOptions()
            )
        except Exception as e:
            logger.error(f"Authentication error: {e}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Authentication failed"}
            )

        if not request_state.is_signed_in:
            logger.warning(f"Invalid Clerk token: {request_state.reason}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Invalid authentication token"}
            )

        clerk_user_id = request_state.payload.get("sub") if request_state.payload else None
        if not clerk_user_id:
            logger.warning("No user_id in token payload")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Invalid token payload"}
            )

        request.state.user_id = clerk_user_id
        return await call_next(request)


def get_current_user_id_from_request(request: Request) -> str:
    """Extract authenticated user id from request state"""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not authenticated"
        )
    return user_id


async def get_authenticated_user_id(request: Request) -> str:
    """FastAPI dependency to get the authenticated user id"""
    return get_current_user_id_from_request(request)
