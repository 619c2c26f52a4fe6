"""
Identity resolution for protected routes.

A route declares which token carrier it accepts; the dependency finds the
token, verifies it, and hands the handler an immutable Principal. Failures
become a generic 401 so clients cannot tell an expired token from a forged
one.

Usage:
    @router.get("/get-all-notes")
    async def list_notes(principal: Principal = Depends(require_principal)):
        ...
"""

import logging
from enum import Enum
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dependencies import get_app_settings, get_credential_store, get_token_service
from errors import AuthError, Unauthenticated
from security.principal import Principal
from security.tokens import TokenService
from services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class TokenCarrier(str, Enum):
    HEADER = "header"
    COOKIE = "cookie"
    # Header first, then cookie
    ANY = "any"


def locate_token(carrier: TokenCarrier, bearer: Optional[str],
                 cookie: Optional[str]) -> Optional[str]:
    """Pick the candidate token according to the route's carrier policy."""
    if carrier in (TokenCarrier.HEADER, TokenCarrier.ANY) and bearer:
        return bearer
    if carrier in (TokenCarrier.COOKIE, TokenCarrier.ANY) and cookie:
        return cookie
    return None


async def resolve_principal(token: str, tokens: TokenService,
                            store: Optional[CredentialStore] = None) -> Principal:
    """Verify a token and turn it into a Principal.

    Args:
        token: Raw token string.
        tokens: Token service holding the signing secret.
        store: When given, the user is re-fetched and must still exist.

    Raises:
        Unauthenticated: Token invalid, expired, or user gone.
    """
    try:
        user_id = tokens.verify(token)
    except AuthError as e:
        logger.debug(f"Token rejected: {type(e).__name__}")
        raise Unauthenticated(INVALID_TOKEN_MESSAGE) from e

    if store is None:
        return Principal(user_id=user_id)

    user = await store.get_user(user_id)
    if user is None:
        logger.debug(f"Token for missing user {user_id} rejected")
        raise Unauthenticated(INVALID_TOKEN_MESSAGE)
    return Principal(user_id=user.id, full_name=user.full_name, email=user.email)


class RequirePrincipal:
    """FastAPI dependency resolving the request's Principal.

    Args:
        carrier: Where the token may come from.
        fetch_user: Re-read the user so tokens of deleted accounts fail.
    """

    def __init__(self, carrier: TokenCarrier = TokenCarrier.ANY,
                 fetch_user: bool = True):
        self.carrier = carrier
        self.fetch_user = fetch_user

    async def __call__(
        self,
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        tokens: TokenService = Depends(get_token_service),
        store: CredentialStore = Depends(get_credential_store),
    ) -> Principal:
        settings = get_app_settings(request)
        token = locate_token(
            self.carrier,
            credentials.credentials if credentials else None,
            request.cookies.get(settings.cookie_name),
        )
        if not token:
            raise Unauthenticated()
        return await resolve_principal(
            token, tokens, store if self.fetch_user else None
        )


# Owner-scoped note routes: header or cookie, user must still exist
require_principal = RequirePrincipal()
# Profile: no re-fetch, the handler reports a vanished user as 404
require_token_principal = RequirePrincipal(fetch_user=False)
