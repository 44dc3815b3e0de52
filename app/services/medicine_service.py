"""
Medicine listing service and rating aggregation
"""

from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
from typing import Iterable, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.models.medicine import Medicine, Rating
from app.models.user import User
from app.schemas.medicine import MedicineCreate
from app.utils.error_handler import (
    AppError, DatabaseError, InvalidRating, NotFoundError, StoreUnavailable,
)

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def compute_average(values: Iterable[int]) -> float:
    """Arithmetic mean rounded half-up to one decimal place; 0.0 when empty"""
    values = list(values)
    if not values:
        return 0.0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def validate_rating(value: Optional[int]) -> int:
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRating()
    if value < MIN_RATING or value > MAX_RATING:
        raise InvalidRating()
    return value


class MedicineService:
    """Queries and writes against the medicine record store"""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Medicine).options(
            joinedload(Medicine.donor),
            selectinload(Medicine.ratings).joinedload(Rating.user),
        )

    async def list_available(self) -> list[Medicine]:
        """Available listings whose expiry date is still in the future"""
        try:
            return (
                self._query()
                .filter(Medicine.status == "available", Medicine.expiry_date > datetime.utcnow())
                .order_by(Medicine.created_at.desc(), Medicine.id.desc())
                .all()
            )
        except OperationalError as e:
            logger.error(f"Database connection error: {e}")
            raise StoreUnavailable(original_error=e)

    async def get_medicine(self, medicine_id: int) -> Medicine:
        medicine = self._query().filter(Medicine.id == medicine_id).first()
        if not medicine:
            raise NotFoundError("Medicine not found")
        return medicine

    async def list_for_user(self, user_id: int) -> list[Medicine]:
        """Listings where the user is the donor or the recipient"""
        return (
            self._query()
            .filter(or_(Medicine.donor_id == user_id, Medicine.recipient_id == user_id))
            .order_by(Medicine.created_at.desc(), Medicine.id.desc())
            .all()
        )

    async def create_medicine(self, donor: User, data: MedicineCreate) -> Medicine:
        try:
            medicine = Medicine(**data.dict(), donor_id=donor.id, status="available", average_rating=0.0)
            self.db.add(medicine)
            self.db.commit()

            logger.info(f"Created medicine {medicine.id} for donor {donor.id}")
            return await self.get_medicine(medicine.id)

        except AppError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create medicine: {e}")
            raise DatabaseError("Failed to create medicine", e)

    async def rate(self, medicine_id: int, user_id: int, value: Optional[int]) -> float:
        """
        Add or replace the caller's rating and return the new average.

        A user holds at most one rating per medicine: a repeat rating
        overwrites the value and timestamp. The average is recomputed over
        all entries and written in the same commit as the ratings list.
        """
        value = validate_rating(value)
        try:
            medicine = (
                self.db.query(Medicine)
                .options(selectinload(Medicine.ratings))
                .filter(Medicine.id == medicine_id)
                .first()
            )
            if not medicine:
                raise NotFoundError("Medicine not found")

            existing = next((r for r in medicine.ratings if r.user_id == user_id), None)
            if existing:
                existing.value = value
                existing.created_at = datetime.utcnow()
            else:
                medicine.ratings.append(Rating(user_id=user_id, value=value, created_at=datetime.utcnow()))

            medicine.average_rating = compute_average(r.value for r in medicine.ratings)
            self.db.commit()

            logger.info(f"User {user_id} rated medicine {medicine_id}: {value} (avg {medicine.average_rating})")
            return medicine.average_rating

        except AppError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to rate medicine {medicine_id}: {e}")
            raise DatabaseError("Failed to save rating", e)
