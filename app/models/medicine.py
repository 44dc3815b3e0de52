"""
Medicine listing and rating models
A medicine is stored together with its ratings; the average is derived from them
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Float, Boolean, JSON,
    ForeignKey, UniqueConstraint, Index, event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.utils.dates import to_naive_utc

CATEGORIES = (
    "Pain Relief",
    "Antibiotics",
    "Cardiovascular",
    "Diabetes",
    "Respiratory",
    "Gastrointestinal",
    "Mental Health",
    "Vitamins & Supplements",
    "First Aid",
    "Other",
)
CONDITIONS = ("new", "like-new", "good")
STATUSES = ("available", "reserved", "donated", "expired")
PACKAGING = ("sealed", "opened", "partial")
DOSAGE_FORMS = (
    "tablet", "capsule", "liquid", "injection", "cream",
    "ointment", "drops", "inhaler", "powder", "other",
)
VERIFICATION_STATUSES = ("pending", "verified", "rejected")


class Medicine(Base):
    """Medicine listing offered by a donor"""
    __tablename__ = "medicines"
    __table_args__ = (
        Index("ix_medicines_category_status", "category", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    expiry_date = Column(DateTime, nullable=False, index=True)
    condition = Column(String(20), default="new", nullable=False)
    original_price = Column(Float, nullable=True)
    is_free = Column(Boolean, default=False, nullable=False)
    images = Column(JSON, default=list, nullable=False)
    location = Column(String(500), nullable=False, index=True)
    status = Column(String(20), default="available", nullable=False)
    donor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    prescription_required = Column(Boolean, default=False, nullable=False)
    prescription_image = Column(String(500), nullable=True)
    packaging = Column(String(20), nullable=False)
    storage_instructions = Column(Text, nullable=True)
    dosage_form = Column(String(20), nullable=False)
    strength = Column(String(100), nullable=False)
    manufacturer = Column(String(200), nullable=False)
    batch_number = Column(String(100), nullable=True)
    verification_status = Column(String(20), default="pending", nullable=False)
    verified_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)
    average_rating = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    donor = relationship("User", foreign_keys=[donor_id])
    recipient = relationship("User", foreign_keys=[recipient_id])
    ratings = relationship(
        "Rating",
        back_populates="medicine",
        cascade="all, delete-orphan",
        order_by="Rating.id",
    )

    @property
    def is_expired(self) -> bool:
        return to_naive_utc(self.expiry_date) < datetime.utcnow()

    @property
    def trust_score(self) -> float:
        return self.average_rating or 0.0

    @property
    def remaining_quantity(self) -> int:
        return self.quantity if self.status == "available" else 0

    def __repr__(self):
        return f"<Medicine(id={self.id}, name='{self.name}', status='{self.status}')>"


class Rating(Base):
    """A single user's rating of a medicine; one per (medicine, user)"""
    __tablename__ = "medicine_ratings"
    __table_args__ = (
        UniqueConstraint("medicine_id", "user_id", name="uq_medicine_rating_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    value = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    medicine = relationship("Medicine", back_populates="ratings")
    user = relationship("User")

    def __repr__(self):
        return f"<Rating(medicine_id={self.medicine_id}, user_id={self.user_id}, value={self.value})>"


@event.listens_for(Medicine, "before_insert")
@event.listens_for(Medicine, "before_update")
def _expire_on_write(mapper, connection, target: Medicine) -> None:
    """Flip status to expired whenever a past-dated listing is written"""
    target.expiry_date = to_naive_utc(target.expiry_date)
    if target.expiry_date is not None and target.is_expired:
        target.status = "expired"
