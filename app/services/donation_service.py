"""
Donation and medicine request record services
"""

from sqlalchemy.orm import Session, joinedload
import logging

from app.models.donation import Donation
from app.models.medicine import Medicine
from app.models.request import MedicineRequest
from app.models.user import User
from app.schemas.donation import DonationCreate, RequestCreate
from app.utils.error_handler import AppError, DatabaseError, NotFoundError

logger = logging.getLogger(__name__)


def _ensure_medicine(db: Session, medicine_id) -> None:
    if medicine_id is not None and not db.query(Medicine.id).filter(Medicine.id == medicine_id).first():
        raise NotFoundError("Medicine not found")


class DonationService:
    """Service for donation transactions"""

    def __init__(self, db: Session):
        self.db = db

    async def create_donation(self, donor: User, data: DonationCreate) -> Donation:
        """Record a donation made by the signed-in donor"""
        try:
            _ensure_medicine(self.db, data.medicine_id)

            donation = Donation(
                **data.dict(),
                donor_id=donor.id,
                donor_email=donor.email,
                status="active",
            )
            self.db.add(donation)
            self.db.commit()
            self.db.refresh(donation)

            logger.info(f"Created donation {donation.id} for user {donor.id}")
            return donation

        except AppError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create donation: {e}")
            raise DatabaseError("Failed to create donation", e)

    async def list_active(self) -> list[Donation]:
        return (
            self.db.query(Donation)
            .options(joinedload(Donation.linked_medicine))
            .filter(Donation.status == "active")
            .order_by(Donation.created_at.desc(), Donation.id.desc())
            .all()
        )

    async def list_for_user(self, user_id: int) -> list[Donation]:
        return (
            self.db.query(Donation)
            .options(joinedload(Donation.linked_medicine))
            .filter(Donation.donor_id == user_id)
            .order_by(Donation.created_at.desc(), Donation.id.desc())
            .all()
        )


class RequestService:
    """Service for medicine requests"""

    def __init__(self, db: Session):
        self.db = db

    async def create_request(self, recipient: User, data: RequestCreate) -> MedicineRequest:
        try:
            _ensure_medicine(self.db, data.medicine_id)

            medicine_request = MedicineRequest(
                **data.dict(),
                recipient_id=recipient.id,
                recipient_email=recipient.email,
                status="pending",
            )
            self.db.add(medicine_request)
            self.db.commit()
            self.db.refresh(medicine_request)

            logger.info(f"Created request {medicine_request.id} for user {recipient.id}")
            return medicine_request

        except AppError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create request: {e}")
            raise DatabaseError("Failed to create request", e)

    async def list_for_user(self, user_id: int) -> list[MedicineRequest]:
        return (
            self.db.query(MedicineRequest)
            .options(joinedload(MedicineRequest.linked_medicine))
            .filter(MedicineRequest.recipient_id == user_id)
            .order_by(MedicineRequest.created_at.desc(), MedicineRequest.id.desc())
            .all()
        )
