"""
Profile and avatar endpoints for the signed-in user
"""

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
import logging
from typing import Optional

from app.dependencies import get_user_service, get_file_storage
from app.models.user import User
from app.schemas.user import ProfileUpdate, ProfileResponse, UserResponse, AvatarResponse
from app.services.user_service import UserService
from app.services.file_storage import FileStorage
from app.auth.auth_handler import get_current_user_record
from app.utils.error_handler import AppError, ValidationError
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile", response_model=UserResponse)
@limiter.limit("30/minute")
async def get_profile(request: Request, user: User = Depends(get_current_user_record)):
    """Get the caller's profile"""
    return UserResponse.from_orm(user)


@router.put("/profile", response_model=ProfileResponse)
@limiter.limit("10/minute")
async def update_profile(
    request: Request,
    profile: ProfileUpdate,
    user: User = Depends(get_current_user_record),
    user_service: UserService = Depends(get_user_service)
):
    """Update name, phone and address"""
    try:
        updated = await user_service.update_profile(user, profile)
        return ProfileResponse(message="Profile updated successfully", user=UserResponse.from_orm(updated))

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Profile update failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/avatar", response_model=AvatarResponse)
@limiter.limit("5/minute")
async def upload_avatar(
    request: Request,
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user_record),
    user_service: UserService = Depends(get_user_service),
    storage: FileStorage = Depends(get_file_storage)
):
    """Store an avatar image and attach it to the profile"""
    try:
        if avatar is None:
            raise ValidationError("No file uploaded")

        avatar_url = await storage.save_avatar(avatar)
        await user_service.set_avatar(user, avatar_url)

        logger.info(f"Avatar updated for user {user.id}")
        return AvatarResponse(avatar_url=avatar_url)

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Avatar upload failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
