"""
Authentication endpoints for signup, login, sessions and account recovery
"""

from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.config import Settings
from app.dependencies import get_user_service, get_email_service
from app.schemas.user import (
    SignupRequest, LoginRequest, EmailRequest, PasswordChange, ResetPasswordRequest,
    VerifyEmailConfirm, AuthResponse, UserSummary, UserResponse, CheckEmailResponse,
    MessageResponse,
)
from app.services.user_service import UserService
from app.services.email_service import EmailService
from app.services.activity_logger import ActivityLogger
from app.auth.auth_handler import (
    AuthHandler, get_auth_handler, get_current_user, get_current_user_record, get_settings,
    set_session_cookie, clear_session_cookie,
)
from app.models.user import User
from app.utils.error_handler import AppError, EmailDeliveryError, InvalidCredentials
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")  # Strict limit to prevent spam registrations
async def signup(
    request: Request,
    response: Response,
    user_data: SignupRequest,
    user_service: UserService = Depends(get_user_service),
    auth_handler: AuthHandler = Depends(get_auth_handler),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
):
    """Register a new account and start a session"""
    try:
        new_user = await user_service.create_user(user_data)

        token = auth_handler.create_access_token(new_user.id)
        set_session_cookie(response, token, settings)

        await ActivityLogger(db).log_request(request, 201, user_id=new_user.id)

        return AuthResponse(message="User created successfully", user=UserSummary.from_orm(new_user))

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Signup failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")  # Prevent brute force attacks
async def login(
    request: Request,
    response: Response,
    login_data: LoginRequest,
    user_service: UserService = Depends(get_user_service),
    auth_handler: AuthHandler = Depends(get_auth_handler),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
):
    """Authenticate and start a session"""
    try:
        user = await user_service.authenticate_user(login_data.email, login_data.password)

        if not user:
            await ActivityLogger(db).log_request(request, 401, error_message="Failed login attempt")
            # Same message for unknown email and wrong password
            raise InvalidCredentials()

        token = auth_handler.create_access_token(user.id)
        set_session_cookie(response, token, settings)

        await ActivityLogger(db).log_request(request, 200, user_id=user.id)

        return AuthResponse(message="Logged in successfully", user=UserSummary.from_orm(user))

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings)
):
    """End the session by deleting the cookie"""
    clear_session_cookie(response, settings)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
@limiter.limit("60/minute")
async def get_current_user_info(
    request: Request,
    user: User = Depends(get_current_user_record)
):
    """Get the signed-in user's record"""
    return UserResponse.from_orm(user)


@router.post("/check-email", response_model=CheckEmailResponse)
@limiter.limit("20/minute")
async def check_email(
    request: Request,
    payload: EmailRequest,
    user_service: UserService = Depends(get_user_service)
):
    """Tell the signup form whether an email is already registered"""
    try:
        existing_user = await user_service.get_user_by_email(payload.email)
        return CheckEmailResponse(exists=existing_user is not None)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Check email failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/change-password", response_model=MessageResponse)
@limiter.limit("5/minute")  # Strict limit for password changes
async def change_password(
    request: Request,
    password_data: PasswordChange,
    current_user: dict = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    db: Session = Depends(get_db)
):
    """Change password after re-verifying the current one"""
    try:
        await user_service.change_password(current_user["user_id"], password_data)

        await ActivityLogger(db).log_request(request, 200, user_id=current_user["user_id"])
        return MessageResponse(message="Password updated successfully")

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Password change failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("5/minute")
async def forgot_password(
    request: Request,
    payload: EmailRequest,
    user_service: UserService = Depends(get_user_service),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
):
    """Email a one-hour password reset link"""
    try:
        user, token = await user_service.start_password_reset(payload.email, settings.RESET_TOKEN_TTL_MINUTES)

        try:
            email_service.send_password_reset_email(user.email, user.name, token)
        except EmailDeliveryError:
            await user_service.cancel_password_reset(user)
            raise EmailDeliveryError("Error sending password reset email")

        await ActivityLogger(db).log_request(request, 200, user_id=user.id)
        return MessageResponse(message="Password reset email sent successfully")

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Forgot password failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.api_route("/reset-password", methods=["POST", "PUT"], response_model=MessageResponse)
@limiter.limit("10/minute")
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    user_service: UserService = Depends(get_user_service),
    db: Session = Depends(get_db)
):
    """Consume a reset token and set the new password"""
    try:
        user = await user_service.reset_password(payload.token, payload.password)

        await ActivityLogger(db).log_request(request, 200, user_id=user.id)
        return MessageResponse(message="Password reset successful")

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Reset password failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/verify-email", response_model=MessageResponse)
@limiter.limit("5/minute")
async def send_verification_email(
    request: Request,
    payload: EmailRequest,
    user_service: UserService = Depends(get_user_service),
    email_service: EmailService = Depends(get_email_service)
):
    """Email a verification link"""
    try:
        user, token = await user_service.start_email_verification(payload.email)

        try:
            email_service.send_verification_email(user.email, token)
        except EmailDeliveryError:
            await user_service.cancel_email_verification(user)
            raise

        return MessageResponse(message="Verification email sent")

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Send verification email failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/verify-email", response_model=MessageResponse)
@limiter.limit("10/minute")
async def verify_email(
    request: Request,
    payload: VerifyEmailConfirm,
    user_service: UserService = Depends(get_user_service),
    db: Session = Depends(get_db)
):
    """Confirm a verification token"""
    try:
        user = await user_service.verify_email(payload.token)

        await ActivityLogger(db).log_request(request, 200, user_id=user.id)
        return MessageResponse(message="Email verified successfully")

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Verify email failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
