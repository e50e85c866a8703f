import asyncio
import logging
import time
from typing import Optional

import httpx
from authlib.jose import JsonWebKey, jwt
from authlib.jose.errors import (
    BadSignatureError,
    DecodeError,
    ExpiredTokenError,
    InvalidClaimError,
)
from workos import WorkOSClient

from smartwardrobe.core.config import settings

logger = logging.getLogger(__name__)


class AuthService:
    """
    Verifies WorkOS access tokens.

    The identity provider owns users and sessions; this service only checks
    the token signature and claims and hands back the subject.
    """

    def __init__(self):
        self.workos_client = WorkOSClient(
            api_key=settings.WORKOS_API_KEY, client_id=settings.WORKOS_CLIENT_ID
        )
        self._jwks_cache: Optional[dict] = None
        self._jwks_cache_expiry: Optional[float] = None

    async def _get_jwks(self) -> dict:
        """
        Fetch the WorkOS JWKS, cached for JWKS_CACHE_TTL_SECONDS.

        Reference: https://workos.com/docs/reference/authkit/session-tokens/jwks
        """
        current_time = time.time()
        if self._jwks_cache and self._jwks_cache_expiry and current_time < self._jwks_cache_expiry:
            return self._jwks_cache

        # Offload synchronous WorkOS call to thread pool to avoid blocking event loop
        # Reference: https://docs.python.org/3/library/asyncio-task.html#asyncio.to_thread
        jwks_url = await asyncio.to_thread(
            self.workos_client.user_management.get_jwks_url
        )

        jwks_start = time.time()
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=10.0)
            response.raise_for_status()
            self._jwks_cache = response.json()
        self._jwks_cache_expiry = current_time + settings.JWKS_CACHE_TTL_SECONDS
        logger.debug(
            f"JWKS fetched in {(time.time() - jwks_start) * 1000:.1f}ms. "
            f"Keys: {len(self._jwks_cache.get('keys', []))}"
        )
        return self._jwks_cache

    async def verify_session(self, access_token: str) -> dict:
        """
        Verify a WorkOS JWT access token with full signature verification.

        Reference: https://workos.com/docs/reference/authkit/session-tokens/access-token

        Args:
            access_token: JWT token from WorkOS

        Returns:
            Dict with user_id (sub claim), session_id (sid claim), exp and iat

        Raises:
            ValueError: If token is invalid, expired, or signature verification fails
        """
        try:
            jwk_set = JsonWebKey.import_key_set(await self._get_jwks())
            claims = jwt.decode(
                access_token,
                jwk_set,
                claims_options={"exp": {"essential": True}, "iat": {"essential": True}},
            )
            claims.validate()
        except ExpiredTokenError:
            logger.warning("Token has expired")
            raise ValueError("Token has expired")
        except BadSignatureError:
            logger.warning("Invalid token signature")
            raise ValueError(
                "Invalid token signature - token may have been tampered with"
            )
        except DecodeError as e:
            logger.warning(f"Failed to decode token: {e}")
            raise ValueError(f"Invalid token format: {e}")
        except InvalidClaimError as e:
            logger.warning(f"Invalid token claim: {e}")
            raise ValueError(f"Invalid token claim: {e}")
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch JWKS: {type(e).__name__}: {e}", exc_info=True)
            raise ValueError("Token verification failed: signing keys unavailable")

        logger.debug(f"Token verified successfully. User: {claims.get('sub')}")
        return {
            "user_id": claims.get("sub"),
            "session_id": claims.get("sid"),
            "exp": claims.get("exp"),
            "iat": claims.get("iat"),
        }
