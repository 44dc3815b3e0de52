"""
Donation model: a donor's offer of a medicine
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

DONATION_STATUSES = ("active", "pending", "completed", "cancelled")


class Donation(Base):
    """Donation transaction record"""
    __tablename__ = "donations"

    id = Column(Integer, primary_key=True, index=True)
    medicine = Column(String(200), nullable=False)  # medicine name as entered by the donor
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=True, index=True)
    donor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    donor_email = Column(String(255), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String(20), default="active", nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    expiry_date = Column(DateTime, nullable=False)
    condition = Column(String(20), nullable=False)
    description = Column(Text, nullable=True)
    images = Column(JSON, default=list, nullable=False)
    location = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    linked_medicine = relationship("Medicine")

    def __repr__(self):
        return f"<Donation(id={self.id}, medicine='{self.medicine}', status='{self.status}')>"
