"""
Authentication router.
Handles registration, bearer and cookie login, logout, and token checks.
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Response, status

from config import Settings
from dependencies import get_app_settings, get_credential_store, get_token_service
from errors import NotFoundError
from models import LoginRequest, RegisterRequest, envelope
from security.identity import (
    Principal,
    RequirePrincipal,
    TokenCarrier,
    require_principal,
    require_token_principal,
)
from security.tokens import TokenService
from services.credential_store import CredentialStore

logger = logging.getLogger(__name__)
router = APIRouter()

require_header_token = RequirePrincipal(TokenCarrier.HEADER, fetch_user=False)


def _token_ttl(settings: Settings) -> timedelta:
    return timedelta(minutes=settings.access_token_ttl_minutes)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    store: CredentialStore = Depends(get_credential_store),
) -> dict:
    """Register a new user account."""
    user = await store.register(data.full_name, data.email, data.password)
    return envelope("User registered successfully", user=user.public())


@router.post("/login")
async def login(
    data: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Login with email and password; the token is returned in the body."""
    user = await store.verify_credentials(data.email, data.password)
    token = tokens.issue(user.id, _token_ttl(settings))
    logger.info(f"User {user.id} logged in (bearer)")
    return envelope("Login successful", token=token)


@router.post("/cookie/login")
async def cookie_login(
    data: LoginRequest,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Login with email and password; the token is set as an HttpOnly cookie."""
    user = await store.verify_credentials(data.email, data.password)
    token = tokens.issue(user.id, _token_ttl(settings))
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.cookie_max_age,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    logger.info(f"User {user.id} logged in (cookie)")
    return envelope("Login successful", user=user.public())


@router.post("/logout")
async def logout(
    response: Response,
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Clear the session cookie. Bearer tokens are client-managed."""
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return envelope("Logged out successfully")


@router.get("/profile")
async def profile(
    principal: Principal = Depends(require_token_principal),
    store: CredentialStore = Depends(get_credential_store),
) -> dict:
    """Current user's profile, without the password hash."""
    user = await store.get_user(principal.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return envelope("Profile retrieved successfully", user=user.public())


@router.get("/me")
async def me(principal: Principal = Depends(require_principal)) -> dict:
    """The identity resolved for this request."""
    return envelope(
        "Authenticated",
        user={
            "userId": principal.user_id,
            "fullName": principal.full_name,
            "email": principal.email,
        },
    )


@router.get("/verify")
async def verify(principal: Principal = Depends(require_header_token)) -> dict:
    """Check a bearer token without touching the store."""
    return envelope("Token is valid", userId=principal.user_id)
