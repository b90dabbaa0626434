"""Password hashing (bcrypt) and access tokens (JWT via python-jose)"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import jwt

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """Returns a salted bcrypt hash of `password`."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash
        return False


def create_access_token(
    user_id: str,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: timedelta = timedelta(hours=24),
    now: Optional[datetime] = None,
) -> str:
    """Signs a token carrying `userId`, issued at `now` and expiring `expires_delta` later."""
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "userId": user_id,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """Verifies signature and expiry. Raises jose.JWTError on any failure."""
    return jwt.decode(token, secret, algorithms=[algorithm])
