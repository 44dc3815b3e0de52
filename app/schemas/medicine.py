"""
Pydantic schemas for medicine listings and ratings
"""

from pydantic import BaseModel, Field, StrictInt, validator
from typing import Optional
from datetime import datetime

from app.models.medicine import CATEGORIES, CONDITIONS, PACKAGING, DOSAGE_FORMS
from app.utils.dates import to_naive_utc


def _check_choice(value: str, choices: tuple, label: str) -> str:
    if value not in choices:
        raise ValueError(f'{label} must be one of: {", ".join(choices)}')
    return value


class MedicineCreate(BaseModel):
    """Schema for listing a medicine"""
    name: str = Field(..., min_length=1, max_length=200)
    category: str
    description: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, description="Quantity must be at least 1")
    expiry_date: datetime
    condition: str = "new"
    original_price: Optional[float] = Field(None, ge=0)
    is_free: bool = False
    images: list[str] = Field(default_factory=list)
    location: str = Field(..., min_length=1, max_length=500)
    prescription_required: bool = False
    prescription_image: Optional[str] = None
    packaging: str
    storage_instructions: Optional[str] = None
    dosage_form: str
    strength: str = Field(..., min_length=1, max_length=100)
    manufacturer: str = Field(..., min_length=1, max_length=200)
    batch_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @validator("name", "description", "location", "strength", "manufacturer")
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("This field is required")
        return v

    @validator("category")
    def validate_category(cls, v):
        return _check_choice(v, CATEGORIES, "Category")

    @validator("condition")
    def validate_condition(cls, v):
        return _check_choice(v, CONDITIONS, "Condition")

    @validator("packaging")
    def validate_packaging(cls, v):
        return _check_choice(v, PACKAGING, "Packaging")

    @validator("dosage_form")
    def validate_dosage_form(cls, v):
        return _check_choice(v, DOSAGE_FORMS, "Dosage form")

    @validator("expiry_date")
    def validate_expiry_date(cls, v):
        v = to_naive_utc(v)
        if v <= datetime.utcnow():
            raise ValueError("Expiry date must be in the future")
        return v


class UserRef(BaseModel):
    """Display block for a referenced user"""
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class RatingResponse(BaseModel):
    id: int
    user_id: int
    value: int
    created_at: datetime
    user: Optional[UserRef] = None

    class Config:
        from_attributes = True


class MedicineResponse(BaseModel):
    """Schema for medicine responses"""
    id: int
    name: str
    category: str
    description: str
    quantity: int
    expiry_date: datetime
    condition: str
    original_price: Optional[float] = None
    is_free: bool
    images: list[str] = Field(default_factory=list)
    location: str
    status: str
    donor_id: int
    donor: Optional[UserRef] = None
    recipient_id: Optional[int] = None
    prescription_required: bool
    prescription_image: Optional[str] = None
    packaging: str
    storage_instructions: Optional[str] = None
    dosage_form: str
    strength: str
    manufacturer: str
    batch_number: Optional[str] = None
    verification_status: str
    verified_by_id: Optional[int] = None
    notes: Optional[str] = None
    average_rating: float
    is_expired: bool
    remaining_quantity: int
    ratings: list[RatingResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MedicineDetailResponse(MedicineResponse):
    trust_score: float


class RateRequest(BaseModel):
    rating: Optional[StrictInt] = None


class RatingResult(BaseModel):
    message: str
    average_rating: float
