"""
Donation endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.models.user import User
from app.schemas.donation import DonationCreate, DonationCreated, DonationResponse
from app.services.donation_service import DonationService
from app.auth.auth_handler import get_current_user, get_current_user_record
from app.utils.error_handler import AppError
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=DonationCreated, status_code=201)
@limiter.limit("10/minute")
async def create_donation(
    request: Request,
    donation: DonationCreate,
    user: User = Depends(get_current_user_record),
    db: Session = Depends(get_db)
):
    """Create a donation on behalf of the signed-in user"""
    try:
        created = await DonationService(db).create_donation(user, donation)
        return DonationCreated(
            message="Donation created successfully",
            donation=DonationResponse.from_orm(created),
        )

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to create donation: {e}")
        raise HTTPException(status_code=500, detail="Failed to create donation")


@router.get("", response_model=list[DonationResponse])
@limiter.limit("60/minute")
async def list_donations(request: Request, db: Session = Depends(get_db)):
    """List active donations, newest first"""
    try:
        return await DonationService(db).list_active()
    except Exception as e:
        logger.error(f"Failed to fetch donations: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch donations")


@router.get("/user", response_model=list[DonationResponse])
@limiter.limit("30/minute")
async def list_user_donations(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The caller's donations"""
    try:
        return await DonationService(db).list_for_user(current_user["user_id"])
    except Exception as e:
        logger.error(f"Failed to fetch user donations: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
