"""
Medicine request model: a recipient asking for a medicine
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

REQUEST_STATUSES = ("pending", "accepted", "completed", "cancelled")
URGENCY_LEVELS = ("low", "medium", "high")


class MedicineRequest(Base):
    """Request transaction record"""
    __tablename__ = "requests"

    id = Column(Integer, primary_key=True, index=True)
    medicine = Column(String(200), nullable=False)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient_email = Column(String(255), nullable=False)
    donor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String(20), default="pending", nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    urgency = Column(String(10), default="medium", nullable=False)
    prescription = Column(String(500), nullable=False)  # prescription image reference
    description = Column(Text, nullable=True)
    location = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    linked_medicine = relationship("Medicine")

    def __repr__(self):
        return f"<MedicineRequest(id={self.id}, medicine='{self.medicine}', status='{self.status}')>"
