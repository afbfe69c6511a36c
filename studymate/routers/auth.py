from fastapi import APIRouter, Depends, Request, status
import structlog

from studymate.auth import create_access_token, decode_token, get_password_hash, verify_password
from studymate.db import get_account_store
from studymate.errors import AuthError, NotFoundError, ValidationError
from studymate.middleware.rate_limit import auth_limit
from studymate.models import LoginRequest, RegisterRequest, VerifyRequest
from studymate.services.account_store import AccountStore

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6


@router.post("/register", status_code=status.HTTP_201_CREATED)
@auth_limit()
def register(request: Request, payload: RegisterRequest, accounts: AccountStore = Depends(get_account_store)):
    if not payload.email or not payload.password or not payload.name or not payload.name.strip():
        raise ValidationError("All fields are required: name, email, password")
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if "@" not in payload.email:
        raise ValidationError("Please provide a valid email address")

    user = accounts.create(
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        name=payload.name,
    )
    token = create_access_token(user.id, user.email)
    logger.info("user_registered", user_id=user.id)
    return {
        "success": True,
        "message": "User registered successfully",
        "token": token,
        "user": user.public(),
    }


@router.post("/login")
@auth_limit()
def login(request: Request, payload: LoginRequest, accounts: AccountStore = Depends(get_account_store)):
    if not payload.email or not payload.password:
        raise ValidationError("Email and password are required")

    user = accounts.find_by_email(payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("login_rejected", email_known=user is not None)
        raise AuthError("Invalid email or password")

    user = accounts.update_last_login(user.id) or user
    token = create_access_token(user.id, user.email)
    logger.info("login_succeeded", user_id=user.id)
    return {
        "success": True,
        "message": "Login successful",
        "token": token,
        "user": user.public(include_last_login=True),
    }


@router.post("/verify")
def verify(payload: VerifyRequest, accounts: AccountStore = Depends(get_account_store)):
    if not payload.token:
        raise ValidationError("Token is required")

    identity = decode_token(payload.token)
    if identity is None:
        raise AuthError("Invalid or expired token")

    user = accounts.find_by_id(identity.user_id)
    if not user:
        raise NotFoundError("User not found")
    return {"success": True, "user": user.public()}
