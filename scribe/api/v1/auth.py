"""Registration, login, token refresh and profile endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from scribe.auth.dependencies import (
    CurrentAuth,
    get_current_user,
    get_token_service,
    token_error_message,
)
from scribe.core.database import get_db
from scribe.core.errors import InvalidTokenError, NotFoundError, UnauthorizedError, ValidationError
from scribe.core.tokens import TokenService, TokenType
from scribe.models import User
from scribe.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    Principal,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UpdateProfileRequest,
)
from scribe.schemas.envelope import ApiResponse, ok
from scribe.services import users as user_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[Principal],
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[Principal]:
    """Create a guest account."""
    user = user_service.register(db, body)
    return ok("User registered successfully", Principal.model_validate(user))


@router.post("/login", response_model=ApiResponse[LoginResponse])
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> ApiResponse[LoginResponse]:
    """
    Authenticate with email and password; returns the user and a token pair.
    Send the access token as: Authorization: Bearer <access_token>
    """
    user = user_service.authenticate(db, body.email, body.password)
    tokens = token_service.issue_token_pair(user)
    logger.info("User logged in", extra={"user_id": user.id})
    return ok(
        "Login successful",
        LoginResponse(
            user=Principal.model_validate(user),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            access_expires_in_ms=tokens.access_expires_in_ms,
        ),
    )


@router.post("/refresh", response_model=ApiResponse[RefreshResponse])
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> ApiResponse[RefreshResponse]:
    """Exchange a refresh token for a new access token. The refresh token is echoed back."""
    if not body.refresh_token:
        raise ValidationError(
            {"refresh_token": ["Refresh token is required"]},
            message="Refresh token is required",
        )
    try:
        payload = token_service.verify(body.refresh_token, TokenType.REFRESH)
    except InvalidTokenError as e:
        raise UnauthorizedError(token_error_message(e, TokenType.REFRESH)) from e
    if user_service.find_by_id(db, payload.principal_id) is None:
        raise NotFoundError("User not found")
    renewed = token_service.renew_access_token(body.refresh_token)
    return ok(
        "Token refreshed successfully",
        RefreshResponse(
            access_token=renewed.access_token,
            refresh_token=body.refresh_token,
            access_expires_in_ms=renewed.access_expires_in_ms,
        ),
    )


@router.get("/profile", response_model=ApiResponse[Principal])
def get_profile(context: CurrentAuth) -> ApiResponse[Principal]:
    return ok("Profile retrieved successfully", context.principal)


@router.patch("/profile", response_model=ApiResponse[Principal])
def update_profile(
    body: UpdateProfileRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[Principal]:
    user = user_service.update_profile(db, user, body)
    return ok("Profile updated successfully", Principal.model_validate(user))


@router.post("/password", response_model=ApiResponse[None])
def change_password(
    body: ChangePasswordRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[None]:
    user_service.change_password(db, user, body)
    logger.info("Password changed", extra={"user_id": user.id})
    return ok("Password changed successfully")


@router.post("/logout", response_model=ApiResponse[None])
def logout(context: CurrentAuth) -> ApiResponse[None]:
    """Tokens are stateless; the client discards them."""
    logger.info("User logged out", extra={"user_id": context.principal.id})
    return ok("Logged out successfully")
