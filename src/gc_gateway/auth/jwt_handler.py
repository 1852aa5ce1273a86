"""JWT access-token creation and verification.

Tokens are minted by the company identity provider, which shares JWT_SECRET
with this service; ``create_access_token`` is the provider-side half of that
contract and is what the test suite uses to authenticate.

The only claim this service trusts is ``sub`` (the employee id). Roles are
always re-read from the employees table, never from the token.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.gc_common.errors import InvalidTokenError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(employee_id: str, expires_in: timedelta | None = None) -> str:
    """Issue an access token for ``employee_id`` (default lifetime JWT_EXPIRE_MINUTES)."""
    now = datetime.now(UTC)
    payload = {
        "sub": employee_id,
        "type": "access",
        "iat": now,
        "exp": now + (expires_in if expires_in is not None else _ACCESS_EXPIRE),
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_access_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidTokenError: signature invalid, token expired, or not an access token.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidTokenError()
    return payload
