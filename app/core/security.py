"""Password hashing and the bearer tokens issued by ``/api/auth/login``."""
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.exceptions import InvalidTokenError

TOKEN_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"

_passwords = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return _passwords.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    # Seeded or imported users may have no usable hash yet.
    if not password or not password_hash:
        return False
    return _passwords.verify(password, password_hash)


def create_access_token(
    user_id: int,
    email: str | None = None,
    ttl: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    issued = now or datetime.now(timezone.utc)
    lifetime = ttl if ttl is not None else timedelta(minutes=settings.JWT_TTL_MINUTES)
    claims = {
        "sub": str(user_id),
        "typ": ACCESS_TOKEN_TYPE,
        "iat": int(issued.timestamp()),
        "exp": int((issued + lifetime).timestamp()),
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=TOKEN_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Return the user id carried by ``token``.

    Raises :class:`InvalidTokenError` for bad signatures, expired tokens,
    tokens of another type and tokens without a numeric subject.
    """
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[TOKEN_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError() from exc
    if claims.get("typ") != ACCESS_TOKEN_TYPE:
        raise InvalidTokenError()
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError() from exc
