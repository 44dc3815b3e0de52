"""
Medicine listing endpoints and ratings
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.models.user import User
from app.schemas.medicine import (
    MedicineCreate, MedicineResponse, MedicineDetailResponse, RateRequest, RatingResult,
)
from app.services.medicine_service import MedicineService
from app.auth.auth_handler import get_current_user, donor_required
from app.utils.error_handler import AppError
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[MedicineResponse])
@limiter.limit("60/minute")
async def list_medicines(request: Request, db: Session = Depends(get_db)):
    """List available medicines that have not expired"""
    try:
        medicines = await MedicineService(db).list_available()
        logger.info(f"Found {len(medicines)} available medicines")
        return medicines

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to list medicines: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch medicines")


@router.post("", response_model=MedicineResponse, status_code=201)
@limiter.limit("10/minute")
async def create_medicine(
    request: Request,
    medicine: MedicineCreate,
    donor: User = Depends(donor_required),
    db: Session = Depends(get_db)
):
    """List a medicine for donation (donors only)"""
    try:
        return await MedicineService(db).create_medicine(donor, medicine)

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to create medicine: {e}")
        raise HTTPException(status_code=500, detail="Failed to create medicine")


@router.get("/user", response_model=list[MedicineResponse])
@limiter.limit("30/minute")
async def list_user_medicines(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Medicines where the caller is the donor or the recipient"""
    try:
        medicines = await MedicineService(db).list_for_user(current_user["user_id"])
        logger.info(f"Found {len(medicines)} medicines for user {current_user['user_id']}")
        return medicines

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch user medicines: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{medicine_id}", response_model=MedicineDetailResponse)
@limiter.limit("60/minute")
async def get_medicine(request: Request, medicine_id: int, db: Session = Depends(get_db)):
    """Get one medicine with its ratings and trust score"""
    try:
        medicine = await MedicineService(db).get_medicine(medicine_id)
        return MedicineDetailResponse.from_orm(medicine)

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch medicine {medicine_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{medicine_id}/rate", response_model=RatingResult)
@limiter.limit("20/minute")
async def rate_medicine(
    request: Request,
    medicine_id: int,
    payload: RateRequest,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Submit or update the caller's rating"""
    try:
        average = await MedicineService(db).rate(medicine_id, current_user["user_id"], payload.rating)
        return RatingResult(message="Rating updated successfully", average_rating=average)

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to rate medicine {medicine_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
