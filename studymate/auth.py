from datetime import datetime, timedelta, timezone
import os
from typing import Optional
import structlog

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from studymate.errors import AuthError, ForbiddenError
from studymate.models import TokenIdentity

logger = structlog.get_logger()

SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change-me")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = 7

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)
bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # unrecognised or corrupted hash
        logger.warning("password_hash_unreadable")
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode = {"sub": user_id, "email": email, "exp": expire, "type": "access"}
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    logger.info("access_token_created", user_id=user_id, expires_at=expire.isoformat())
    return encoded_jwt


def verify_token(token: str) -> Optional[dict]:
    """Verify JWT token and return full payload"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("token_verification_failed", error=str(e))
        return None

    if payload.get("type") != "access":
        logger.warning("invalid_token_type", expected="access", actual=payload.get("type"))
        return None
    if not payload.get("sub"):
        logger.warning("token_missing_subject")
        return None

    return payload


def decode_token(token: str) -> Optional[TokenIdentity]:
    payload = verify_token(token)
    if payload is None:
        return None
    return TokenIdentity(user_id=str(payload["sub"]), email=payload.get("email", ""))


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenIdentity:
    """Bearer gate: 401 without a credential, 403 when it does not verify."""
    if credentials is None or not credentials.credentials:
        raise AuthError("Access token required")

    identity = decode_token(credentials.credentials)
    if identity is None:
        raise ForbiddenError("Invalid or expired token")

    request.state.user = identity
    return identity
