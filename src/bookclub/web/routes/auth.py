"""Authentication endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials

from bookclub.core import auth
from bookclub.core.subscriptions import get_or_create_subscription, summarize
from bookclub.core.users import private_profile
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import bearer_scheme, get_current_user
from bookclub.web.schemas import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    SessionResponse,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(user: UserRecord, session: auth.Session) -> AuthResponse:
    return AuthResponse(
        user=private_profile(user),
        subscription=summarize(get_or_create_subscription(user.id)),
        session=SessionResponse.model_validate(session),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest) -> AuthResponse:
    """Create an account with a free subscription."""
    user, session = auth.register(body.email, body.username, body.password)
    return _auth_response(user, session)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest) -> AuthResponse:
    user, session = auth.login(body.email, body.password)
    return _auth_response(user, session)


@router.post("/logout")
async def logout(
    user: UserRecord = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> dict:
    """Revoke the current access token."""
    auth.logout(credentials.credentials)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def me(user: UserRecord = Depends(get_current_user)) -> MeResponse:
    return MeResponse(
        user=private_profile(user),
        subscription=summarize(get_or_create_subscription(user.id)),
    )


@router.post("/refresh", response_model=SessionResponse)
async def refresh(body: RefreshRequest) -> SessionResponse:
    """Trade a refresh token for a new session."""
    return SessionResponse.model_validate(auth.refresh(body.refresh_token))
