"""
Token service: issues and verifies signed bearer tokens.

Tokens are stateless JWTs (python-jose) carrying ``sub`` (user id),
``iat`` and ``exp``. The only server-side state is the signing secret;
rotating it invalidates every token issued before.

Verification is pure: it proves the token's origin and freshness, not
that the user still exists. Callers that need liveness re-fetch the user.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from jose import jwt
from jose.exceptions import JOSEError

from errors import ServerError, TokenExpired, TokenInvalid
from utils.clock import utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class TokenService:
    """Issue and verify HS256 (by default) access tokens.

    Args:
        secret_key: Process-wide signing secret.
        algorithm: JWT algorithm; the only one accepted on verify.
        clock: Returns the current aware datetime; injectable for tests.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256",
                 clock: Clock = utc_now):
        if not secret_key:
            raise ValueError("Token signing secret must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock

    def issue(self, user_id: str, ttl: timedelta) -> str:
        """Create a token for user_id that expires at now + ttl."""
        now = self._clock()
        payload = {
            "sub": user_id,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        try:
            return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        except JOSEError as e:
            logger.error(f"Token signing failed: {e}")
            raise ServerError() from e

    def verify(self, token: str) -> str:
        """Return the user id encoded in a valid, unexpired token.

        Raises:
            TokenInvalid: Bad signature, wrong algorithm or malformed claims.
            TokenExpired: Current time is at or past ``exp``.
        """
        try:
            # Expiry is checked below so that "at exp" counts as expired
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JOSEError as e:
            raise TokenInvalid() from e

        user_id = claims.get("sub")
        exp = claims.get("exp")
        if not isinstance(user_id, str) or not user_id:
            raise TokenInvalid()
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenInvalid()

        if self._clock().timestamp() >= exp:
            raise TokenExpired()
        return user_id
