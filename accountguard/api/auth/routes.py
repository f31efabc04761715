"""
Auth routes.

Defines the REST endpoints for the account lifecycle under ``/auth``.
Domain exceptions propagate to the handlers in ``accountguard.api.errors``.
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from accountguard.api.dependencies import get_account_service, get_current_claims
from accountguard.api.limiter import AUTH_LIMIT_MESSAGE, auth_rate_limit, limiter
from accountguard.api.models import (
    ChangePasswordRequest,
    EmailRequest,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    LoginUser,
    MessageResponse,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UserSummary,
    VerifyEmailRequest,
)
from accountguard.domain.lifecycle import AccountLifecycleService
from accountguard.security.bearer import BearerClaims

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Identical bodies whether or not the account exists
RESEND_VERIFICATION_MESSAGE = (
    "If an account with that email exists and is not yet verified, "
    "a new verification email has been sent"
)
FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent"
)

_validation_error = {400: {"model": ErrorResponse, "description": "Validation failed"}}


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Duplicate email or validation failed"},
        429: {"model": ErrorResponse, "description": "Too many attempts"},
    },
    summary="Register a new account",
)
@limiter.shared_limit(auth_rate_limit, scope="auth", error_message=AUTH_LIMIT_MESSAGE)
def register(
    request: Request,
    request_data: RegisterRequest,
    service: AccountLifecycleService = Depends(get_account_service),
) -> RegisterResponse:
    """
    Create an unverified account and email a verification link.

    - **name**: Letters and spaces, 2-255 characters
    - **email**: Valid email address (stored lowercase)
    - **password**: At least 6 characters with a letter and a number
    """
    result = service.register(request_data.name, request_data.email, request_data.password)
    if result.requires_verification:
        message = "Registration successful. Please verify your email before logging in"
    else:
        message = "Registration successful"
    return RegisterResponse(
        message=message,
        requires_verification=result.requires_verification,
        user=UserSummary.from_domain(result.account),
    )


@router.post(
    "/verify-email",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid or expired token"}},
    summary="Verify an email address",
)
def verify_email(
    request_data: VerifyEmailRequest,
    service: AccountLifecycleService = Depends(get_account_service),
) -> MessageResponse:
    service.verify_email(request_data.token)
    return MessageResponse(message="Email verified successfully")


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    responses=_validation_error,
    summary="Resend the verification email",
)
def resend_verification(
    request_data: EmailRequest,
    service: AccountLifecycleService = Depends(get_account_service),
) -> MessageResponse:
    service.resend_verification(request_data.email)
    return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Email not verified"},
        423: {"model": ErrorResponse, "description": "Account locked"},
        429: {"model": ErrorResponse, "description": "Too many attempts"},
    },
    summary="Log in and receive a bearer token",
)
@limiter.shared_limit(auth_rate_limit, scope="auth", error_message=AUTH_LIMIT_MESSAGE)
def login(
    request: Request,
    request_data: LoginRequest,
    service: AccountLifecycleService = Depends(get_account_service),
) -> LoginResponse:
    result = service.login(request_data.email, request_data.password)
    return LoginResponse(
        token=result.token,
        expires_in=result.expires_in,
        user=LoginUser.from_domain(result.account),
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses=_validation_error,
    summary="Request a password reset email",
)
def forgot_password(
    request_data: EmailRequest,
    service: AccountLifecycleService = Depends(get_account_service),
) -> MessageResponse:
    service.forgot_password(request_data.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid or expired token"}},
    summary="Set a new password with a reset token",
)
def reset_password(
    request_data: ResetPasswordRequest,
    service: AccountLifecycleService = Depends(get_account_service),
) -> MessageResponse:
    service.reset_password(request_data.token, request_data.new_password)
    return MessageResponse(message="Password has been reset successfully")


@router.post(
    "/change-password",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials or token"},
        404: {"model": ErrorResponse, "description": "Account not found"},
    },
    summary="Change the password of the authenticated account",
)
def change_password(
    request_data: ChangePasswordRequest,
    claims: BearerClaims = Depends(get_current_claims),
    service: AccountLifecycleService = Depends(get_account_service),
) -> MessageResponse:
    service.change_password(
        claims.account_id, request_data.current_password, request_data.new_password
    )
    return MessageResponse(message="Password changed successfully")


@router.get(
    "/me",
    response_model=ProfileResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid or expired token"},
        404: {"model": ErrorResponse, "description": "Account not found"},
    },
    summary="Get the authenticated account's profile",
)
def me(
    claims: BearerClaims = Depends(get_current_claims),
    service: AccountLifecycleService = Depends(get_account_service),
) -> ProfileResponse:
    return ProfileResponse.from_domain(service.get_account(claims.account_id))


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid or expired token"}},
    summary="Log out (client discards the token)",
)
def logout(claims: BearerClaims = Depends(get_current_claims)) -> MessageResponse:
    """
    Stateless logout: tokens are not tracked server-side, so there is
    nothing to revoke. The client must discard its token.
    """
    logger.info("Logout for account %s", claims.account_id)
    return MessageResponse(
        message="Logged out successfully. Please remove the token from client storage"
    )
