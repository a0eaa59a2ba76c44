"""Bearer token authentication middleware."""

from typing import Callable
from uuid import UUID

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.logging_config import get_logger
from app.schemas.error import ErrorResponse

logger = get_logger(__name__)

PROTECTED_PREFIX = "/api/"


def _unauthorized(detail: str, error_code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=ErrorResponse(detail=detail, error_code=error_code).model_dump(mode="json"),
    )


class UserIsolationMiddleware(BaseHTTPMiddleware):
    """Decodes the bearer JWT on /api/ routes and stores the user ID in request state.

    Token issuance lives outside this service; the token's ``sub`` claim
    must be the user's UUID.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        """Process request and inject user context."""
        if not request.url.path.startswith(PROTECTED_PREFIX):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            logger.warning(
                "missing_authorization_header",
                path=request.url.path,
                method=request.method,
            )
            return _unauthorized("Missing or invalid Authorization header", "UNAUTHORIZED")

        token = auth_header.split(" ", 1)[1]
        user_id_str = None

        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
            )
            user_id_str = payload.get("sub")
            if not user_id_str:
                raise JWTError("Missing 'sub' claim in token")
            user_id = UUID(user_id_str)

        except JWTError as e:
            logger.warning(
                "invalid_jwt_token",
                error=str(e),
                path=request.url.path,
                method=request.method,
            )
            return _unauthorized("Invalid or expired token", "INVALID_TOKEN")
        except ValueError as e:
            logger.warning(
                "invalid_user_id_format",
                error=str(e),
                user_id=user_id_str,
            )
            return _unauthorized("Invalid user ID format", "INVALID_USER_ID")

        request.state.user_id = user_id

        logger.debug(
            "user_authenticated",
            user_id=str(user_id),
            path=request.url.path,
            method=request.method,
        )

        return await call_next(request)


def get_current_user_id(request: Request) -> UUID:
    """Get current user ID from request state."""
    if not hasattr(request.state, "user_id"):
        raise ValueError("User ID not found in request state")
    return request.state.user_id
