# cacs_api/utils/tokenJWT.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from cacs_api.config import Settings, get_settings
from cacs_api.database import get_db
from cacs_api.errors import Forbidden, InternalError, Unauthorized
from cacs_api.models.users import User

logger = logging.getLogger(__name__)

TOKEN_HEADER = "x-auth-token"

# Bearer credential is carried in a custom header rather than Authorization
token_header = APIKeyHeader(name=TOKEN_HEADER, auto_error=False)


class InvalidToken(Exception):
    """Signature mismatch, malformed token, expired token or missing claims."""


class TokenConfigurationError(RuntimeError):
    """No signing secret is configured; tokens can be neither issued nor checked."""


def _secret(settings: Settings) -> str:
    if not settings.JWT_SECRET:
        raise TokenConfigurationError("JWT_SECRET not configured")
    return settings.JWT_SECRET


# Generate a signed access token carrying the given claims
def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    secret = _secret(settings)
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> dict:
    secret = _secret(settings)
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise InvalidToken(str(exc)) from exc
    if not payload.get("userId"):
        raise InvalidToken("token carries no userId")
    return payload


def issue_token_or_fail(data: dict, settings: Settings) -> str:
    # Fails closed with a 500 instead of signing with some fallback secret
    try:
        return create_access_token(data, settings)
    except TokenConfigurationError:
        logger.error("JWT_SECRET not set; refusing to issue tokens")
        raise InternalError("Server configuration error")


# Verify the x-auth-token header and expose its claims to the handler
def get_current_user(
    request: Request,
    token: Optional[str] = Depends(token_header),
    settings: Settings = Depends(get_settings),
) -> dict:
    if not token:
        raise Unauthorized("No token, authorization denied")
    try:
        claims = decode_access_token(token, settings)
    except TokenConfigurationError:
        logger.error("JWT_SECRET not set; cannot verify tokens")
        raise InternalError("Server configuration error")
    except InvalidToken as exc:
        logger.info("Rejected token: %s", exc)
        raise Unauthorized("Token is not valid")
    request.state.user = claims
    return claims


# Privileged variant: the admin flag is re-read from the database, not taken from the token
def admin_required(
    request: Request,
    claims: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    user = db.query(User).filter(User.id == claims["userId"]).first()
    if user is None or not user.is_admin:
        raise Forbidden("Access denied. Admin privileges required.")
    claims = {**claims, "isAdmin": True}
    request.state.user = claims
    return claims
