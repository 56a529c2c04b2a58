import logging

from fastapi import APIRouter, Header, HTTPException, status

from app.config import settings
from app.schemas.auth import (
    CredentialsRequest,
    LoginResponse,
    PasswordStrengthRequest,
    PasswordStrengthResponse,
    RegisterRequest,
    RegisterResponse,
)
from app.services.credentials import CredentialsError, credential_store
from app.services.password_strength import evaluate_password
from app.services.sessions import session_store
from app.services.tokens import TokenError, create_access_token, decode_access_token

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header",
        )
    return token


def _resolve_user_id(token: str) -> int:
    try:
        access_data = decode_access_token(token)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    user_id = session_store.get_user_id(access_data.session_token)
    if user_id is None or user_id != access_data.user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token",
        )
    return user_id


def get_current_user_id(authorization: str | None = Header(default=None)) -> int:
    return _resolve_user_id(_bearer_token(authorization))


def get_optional_user_id(authorization: str | None = Header(default=None)) -> int | None:
    if not authorization:
        return None
    # Public pages fall back to anonymous rather than rejecting a stale token.
    try:
        return _resolve_user_id(_bearer_token(authorization))
    except HTTPException:
        return None


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest) -> RegisterResponse:
    try:
        entry = credential_store.create(payload.mobile_number, payload.password)
    except CredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    return RegisterResponse(message="Account created", user_id=entry.id)


@router.post("/login", response_model=LoginResponse)
def login(payload: CredentialsRequest) -> LoginResponse:
    entry = credential_store.authenticate(payload.mobile_number, payload.password)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid mobile number or password",
        )
    session_token = session_store.create_session(entry.id)
    try:
        access_token = create_access_token(entry.id, session_token)
    except TokenError as exc:
        LOGGER.error("Unable to issue access token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in_seconds=settings.access_token_expire_minutes * 60,
        user_id=entry.id,
    )


@router.post("/logout")
def logout(authorization: str | None = Header(default=None)) -> dict:
    token = _bearer_token(authorization)
    try:
        access_data = decode_access_token(token)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    if not session_store.revoke_session(access_data.session_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token",
        )
    return {"message": "Logged out"}


@router.post("/password-strength", response_model=PasswordStrengthResponse)
def password_strength(payload: PasswordStrengthRequest) -> PasswordStrengthResponse:
    result = evaluate_password(payload.password)
    return PasswordStrengthResponse(
        checks=result.checks,
        passed_checks=result.passed_checks,
        strength=result.strength,
        percentage=result.percentage,
    )
