import re
import time
from functools import lru_cache
from typing import Optional

import jwt
from passlib.context import CryptContext

DEFAULT_ROUNDS = 29000
ALGORITHM = "HS256"

# at least one lowercase, one uppercase and one digit, 8 characters or more
_PASSWORD_STRENGTH = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")


@lru_cache
def _password_context(rounds: int) -> CryptContext:
    # Use pbkdf2_sha256 as default to avoid bcrypt 72-byte limitation in some envs
    return CryptContext(
        schemes=["pbkdf2_sha256", "bcrypt"],
        deprecated="auto",
        pbkdf2_sha256__default_rounds=rounds,
    )


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    return _password_context(rounds).hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    # rounds are embedded in the hash, any context can verify it
    return _password_context(DEFAULT_ROUNDS).verify(plain, hashed)


def validate_password_strength(password: str) -> bool:
    return bool(_PASSWORD_STRENGTH.match(password or ""))


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    secret: str,
    expires_delta: Optional[int] = None,
    algorithm: str = ALGORITHM,
) -> str:
    """Issue a signed token for ``user_id``; ``expires_delta`` is in seconds."""
    now = int(time.time())
    exp = now + (expires_delta if expires_delta is not None else 60 * 60 * 24 * 7)
    payload = {"sub": str(user_id), "email": email, "role": role, "iat": now, "exp": exp}
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = ALGORITHM) -> dict:
    """Verify signature and expiry, returning the claims.

    Raises ``jwt.PyJWTError`` when the token is malformed, expired or signed
    with another secret.
    """
    return jwt.decode(token, secret, algorithms=[algorithm], options={"require": ["sub", "exp"]})


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    if not header or not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None
