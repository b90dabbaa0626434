"""Service layer for sign-up, log-in and bearer token checks."""
import asyncio
import logging
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional

from jose import ExpiredSignatureError, JWTError
from pymongo.errors import DuplicateKeyError

from config import Settings
from errors import AuthError, ConflictError
from models.user import AuthResult, LoginRequest, SignUpRequest
from services.users_store import UserStore
from utils.security import create_access_token, decode_access_token, hash_password, verify_password
from utils.validation import parse_input

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Invalid or expired token"
USER_EXISTS = "User already exists with this email or username"


@lru_cache(maxsize=None)
def _dummy_password_hash(rounds: int) -> str:
    """Hash compared against when the email is unknown, so both login failures cost one bcrypt check."""
    return hash_password("unknown-user-placeholder", rounds)


def issue_token(settings: Settings, user_id: str, now: Optional[datetime] = None) -> str:
    return create_access_token(
        user_id,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_delta=timedelta(hours=settings.jwt_expires_hours),
        now=now,
    )


async def sign_up(users: UserStore, settings: Settings, username, email, password) -> AuthResult:
    """
    Registers a new user and returns it with a fresh token.
    Raises ValidationError for missing fields or a short password and
    ConflictError if the email or username is taken.
    """
    data = parse_input(SignUpRequest, {"username": username, "email": email, "password": password})

    if await users.exists(data.email, data.username):
        logger.warning(f"Signup rejected: email '{data.email}' or username '{data.username}' already registered.")
        raise ConflictError(USER_EXISTS)

    # bcrypt is CPU-bound; keep it off the event loop
    password_hash = await asyncio.to_thread(hash_password, data.password, settings.bcrypt_rounds)
    try:
        user = await users.insert(data.username, data.email, password_hash)
    except DuplicateKeyError as e:
        logger.warning(f"Signup rejected by unique index for '{data.email}' / '{data.username}': {e}")
        raise ConflictError(USER_EXISTS)

    return AuthResult(token=issue_token(settings, user.id), user=user.public())


async def log_in(users: UserStore, settings: Settings, email, password) -> AuthResult:
    """
    Checks credentials and returns a fresh token. The client only ever sees
    "Invalid credentials"; the log records which check failed.
    """
    data = parse_input(LoginRequest, {"email": email, "password": password})

    user = await users.find_by_email(data.email)
    if user is None:
        await asyncio.to_thread(verify_password, data.password, _dummy_password_hash(settings.bcrypt_rounds))
        logger.warning(f"Login failed: no user registered with email '{data.email}'.")
        raise AuthError(INVALID_CREDENTIALS)

    if not await asyncio.to_thread(verify_password, data.password, user.password):
        logger.warning(f"Login failed: wrong password for user {user.id}.")
        raise AuthError(INVALID_CREDENTIALS)

    logger.info(f"User {user.id} logged in.")
    return AuthResult(token=issue_token(settings, user.id), user=user.public())


def verify_token(settings: Settings, token: Optional[str]) -> str:
    """Returns the user id embedded in a valid, unexpired token."""
    if not token:
        raise AuthError("Access token required")
    try:
        claims = decode_access_token(token, settings.jwt_secret, settings.jwt_algorithm)
    except ExpiredSignatureError:
        logger.info("Rejected expired access token.")
        raise AuthError(INVALID_TOKEN)
    except JWTError as e:
        logger.warning(f"Rejected invalid access token: {e}")
        raise AuthError(INVALID_TOKEN)

    user_id = claims.get("userId")
    if not isinstance(user_id, str) or not user_id:
        logger.warning("Rejected access token without a userId claim.")
        raise AuthError(INVALID_TOKEN)
    return user_id


async def authenticate(users: UserStore, settings: Settings, token: Optional[str]) -> str:
    """verify_token, plus a check that the user still exists."""
    user_id = verify_token(settings, token)
    if await users.find_by_id(user_id) is None:
        logger.warning(f"Rejected access token for unknown user {user_id}.")
        raise AuthError(INVALID_TOKEN)
    return user_id
