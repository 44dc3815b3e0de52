"""
Medicine request endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.models.user import User
from app.schemas.donation import RequestCreate, RequestCreated, RequestResponse
from app.services.donation_service import RequestService
from app.auth.auth_handler import get_current_user, recipient_required
from app.utils.error_handler import AppError
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=RequestCreated, status_code=201)
@limiter.limit("10/minute")
async def create_request(
    request: Request,
    medicine_request: RequestCreate,
    recipient: User = Depends(recipient_required),
    db: Session = Depends(get_db)
):
    """Request a medicine (recipients only)"""
    try:
        created = await RequestService(db).create_request(recipient, medicine_request)
        return RequestCreated(
            message="Request created successfully",
            request=RequestResponse.from_orm(created),
        )

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to create request: {e}")
        raise HTTPException(status_code=500, detail="Failed to create request")


@router.get("/user", response_model=list[RequestResponse])
@limiter.limit("30/minute")
async def list_user_requests(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The caller's requests"""
    try:
        return await RequestService(db).list_for_user(current_user["user_id"])
    except Exception as e:
        logger.error(f"Failed to fetch user requests: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
