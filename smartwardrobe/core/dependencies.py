"""
Authentication dependencies for protecting endpoints
Reference: https://fastapi.tiangolo.com/tutorial/dependencies/
"""
import logging
from functools import lru_cache
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from smartwardrobe.api.v1.schemas.auth import CurrentUser
from smartwardrobe.services.auth import AuthService

logger = logging.getLogger(__name__)

# HTTPBearer automatically extracts Bearer token from Authorization header
# Reference: https://fastapi.tiangolo.com/reference/security/#fastapi.security.HTTPBearer
security = HTTPBearer()


@lru_cache()
def get_auth_service() -> AuthService:
    """
    Get a singleton AuthService instance.

    Reusing one instance keeps the JWKS cache at application level.
    Reference: https://docs.python.org/3/library/functools.html#functools.lru_cache
    """
    return AuthService()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """
    Dependency to get the current authenticated user.

    Validates the JWT access token from the Authorization header using WorkOS JWKS.
    Requests without a verifiable identity never reach the wardrobe services.

    Usage:
        @router.get("/protected")
        async def protected_route(current_user: CurrentUser = Depends(get_current_user)):
            return {"user_id": current_user.id}

    Raises:
        HTTPException: 401 if token is invalid or missing user information
    """
    try:
        session_data = await auth_service.verify_session(credentials.credentials)
    except ValueError as e:
        # Map error to RFC6750-compliant WWW-Authenticate header
        msg = str(e)
        description = msg or "The access token is invalid"
        if "expired" in msg.lower():
            description = "The access token expired"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=msg or "Unauthorized",
            headers={
                "WWW-Authenticate": f'Bearer realm="api", error="invalid_token", error_description="{description}"'
            },
        ) from e

    user_id = session_data.get("user_id")
    if not user_id:
        logger.error("Token missing user_id (sub claim)")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user information",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(id=user_id, session_id=session_data.get("session_id"))
