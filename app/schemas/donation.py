"""
Pydantic schemas for donations and medicine requests
"""

from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

from app.models.medicine import CONDITIONS
from app.models.request import URGENCY_LEVELS
from app.utils.dates import to_naive_utc


class DonationCreate(BaseModel):
    """Schema for creating a donation"""
    medicine: str = Field(..., max_length=200)
    quantity: int = Field(..., ge=1, description="Quantity must be at least 1")
    expiry_date: datetime
    condition: str
    location: str = Field(..., max_length=500)
    description: Optional[str] = Field(None, max_length=500)
    images: list[str] = Field(default_factory=list)
    medicine_id: Optional[int] = None

    @validator("medicine", "location")
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("This field is required")
        return v

    @validator("condition")
    def validate_condition(cls, v):
        if v not in CONDITIONS:
            raise ValueError(f'Condition must be one of: {", ".join(CONDITIONS)}')
        return v

    @validator("expiry_date")
    def normalize_expiry_date(cls, v):
        return to_naive_utc(v)


class MedicineRef(BaseModel):
    id: int
    name: str
    quantity: int
    expiry_date: datetime

    class Config:
        from_attributes = True


class DonationResponse(BaseModel):
    id: int
    medicine: str
    medicine_id: Optional[int] = None
    linked_medicine: Optional[MedicineRef] = None
    donor_id: int
    donor_email: str
    recipient_id: Optional[int] = None
    status: str
    quantity: int
    expiry_date: datetime
    condition: str
    description: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    location: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DonationCreated(BaseModel):
    message: str
    donation: DonationResponse


class RequestCreate(BaseModel):
    """Schema for requesting a medicine"""
    medicine: str = Field(..., max_length=200)
    quantity: int = Field(..., ge=1, description="Quantity must be at least 1")
    urgency: str = "medium"
    prescription: str = Field(..., description="Prescription image reference")
    description: Optional[str] = Field(None, max_length=500)
    location: str = Field(..., max_length=500)
    medicine_id: Optional[int] = None

    @validator("medicine", "prescription", "location")
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("This field is required")
        return v

    @validator("urgency")
    def validate_urgency(cls, v):
        if v not in URGENCY_LEVELS:
            raise ValueError(f'Urgency must be one of: {", ".join(URGENCY_LEVELS)}')
        return v


class RequestResponse(BaseModel):
    id: int
    medicine: str
    medicine_id: Optional[int] = None
    linked_medicine: Optional[MedicineRef] = None
    recipient_id: int
    recipient_email: str
    donor_id: Optional[int] = None
    status: str
    quantity: int
    urgency: str
    prescription: str
    description: Optional[str] = None
    location: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RequestCreated(BaseModel):
    message: str
    request: RequestResponse
