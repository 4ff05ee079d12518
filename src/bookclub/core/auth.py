"""Account registration, login and JWT sessions.

Passwords are hashed with bcrypt. Sessions are a pair of HS256 JWTs:
a short-lived access token and a long-lived refresh token. Each token has
a ``jti`` so logout can revoke it.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt
import structlog

from bookclub.config.app_config import load_app_config
from bookclub.db import subscriptions_repository as subscriptions_repo
from bookclub.db import users_repository as users_repo
from bookclub.db.users_repository import UserRecord
from bookclub.utils.errors import APIError
from bookclub.utils.validators import validate_email, validate_username

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 8


@dataclass
class Session:
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _encode(user_id: str, token_type: str, ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "jti": uuid.uuid4().hex,
        "type": token_type,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, load_app_config().auth.get_jwt_secret(), algorithm=ALGORITHM)


def create_session(user_id: str) -> Session:
    """Issue a fresh access/refresh token pair."""
    auth = load_app_config().auth
    access_ttl = timedelta(minutes=auth.access_token_ttl_minutes)
    return Session(
        access_token=_encode(user_id, "access", access_ttl),
        refresh_token=_encode(user_id, "refresh", timedelta(days=auth.refresh_token_ttl_days)),
        token_type="bearer",
        expires_in=int(access_ttl.total_seconds()),
    )


def decode_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """Decode and validate a token.

    Args:
        token: Encoded JWT
        expected_type: "access" or "refresh"

    Returns:
        Token claims

    Raises:
        jwt.InvalidTokenError: Bad signature, expired, wrong type or revoked
    """
    payload = jwt.decode(
        token,
        load_app_config().auth.get_jwt_secret(),
        algorithms=[ALGORITHM],
        options={"require": ["sub", "jti", "exp"]},
    )
    if payload.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"Expected {expected_type} token")
    if users_repo.is_token_revoked(payload["jti"]):
        raise jwt.InvalidTokenError("Token has been revoked")
    return payload


def authenticate_token(token: str) -> UserRecord:
    """Resolve an access token to its user.

    Raises:
        APIError: 401 "Invalid token" for any invalid, expired or revoked token
    """
    try:
        payload = decode_token(token, "access")
    except jwt.InvalidTokenError as e:
        logger.debug("token_rejected", error=str(e))
        raise APIError.unauthorized("Invalid token") from e

    user = users_repo.get_user_by_id(payload["sub"])
    if user is None:
        raise APIError.unauthorized("Invalid token")
    return user


def register(email: str, username: str, password: str) -> tuple[UserRecord, Session]:
    """Create an account with a free subscription and log it in.

    Raises:
        APIError: 400 on invalid input, 409 if email or username is taken
    """
    email = (email or "").strip().lower()
    username = (username or "").strip()

    if not validate_email(email):
        raise APIError.bad_request("Invalid email format")
    if not validate_username(username):
        raise APIError.bad_request("Username must be 3-30 characters (letters, digits, . _ -)")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise APIError.bad_request(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if users_repo.get_user_by_email(email) or users_repo.get_user_by_username(username):
        raise APIError.conflict("User with this email or username already exists")

    try:
        user = users_repo.insert_user(email, username, hash_password(password))
    except sqlite3.IntegrityError as e:
        raise APIError.conflict("User with this email or username already exists") from e

    subscriptions_repo.insert_subscription(user.id)
    logger.info("user_registered", user_id=user.id)
    return user, create_session(user.id)


def login(email: str | None, password: str | None) -> tuple[UserRecord, Session]:
    """Check credentials and open a session.

    Raises:
        APIError: 400 if a field is missing, 401 on bad credentials
    """
    if not email or not password:
        raise APIError.bad_request("Email and password are required")

    user = users_repo.get_user_by_email(email.strip())
    if user is None or not verify_password(password, user.password_hash):
        logger.info("login_failed", email_domain=email.rpartition("@")[2])
        raise APIError.unauthorized("Invalid credentials")

    logger.info("user_logged_in", user_id=user.id)
    return user, create_session(user.id)


def logout(token: str) -> None:
    """Revoke the given access token."""
    payload = decode_token(token, "access")
    users_repo.revoke_token(payload["jti"])
    logger.info("user_logged_out", user_id=payload["sub"])


def refresh(refresh_token: str | None) -> Session:
    """Trade a refresh token for a new session, revoking the old one.

    Raises:
        APIError: 400 if missing, 401 "Invalid refresh token" otherwise
    """
    if not refresh_token:
        raise APIError.bad_request("Refresh token is required")

    try:
        payload = decode_token(refresh_token, "refresh")
    except jwt.InvalidTokenError as e:
        raise APIError.unauthorized("Invalid refresh token") from e

    if users_repo.get_user_by_id(payload["sub"]) is None:
        raise APIError.unauthorized("Invalid refresh token")

    users_repo.revoke_token(payload["jti"])
    return create_session(payload["sub"])
