from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

from schemas.availability_schema import AvailabilityWindow
from schemas.enum import CategoryEnum


class ProfessionalProfileDTO(BaseModel):
    """Canonical in-memory shape of a professional, whatever version was stored."""
    id: str
    user_id: str
    name: str
    email: str
    category: Optional[CategoryEnum]
    primary_specialty: Optional[str]
    languages: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    education: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    price: Optional[float] = None
    currency: str = "XOF"
    offers_free_consultations: bool = False
    availability: List[AvailabilityWindow] = Field(default_factory=list)
    is_available_now: bool = False
    is_active: bool = True
    is_approved: bool = False
    rating: float = 5.0
    reviews: int = 0
    schema_version: int = 2


class CreateProfessionalDTO(BaseModel):
    name: str
    email: EmailStr
    category: CategoryEnum = CategoryEnum.MENTAL_HEALTH


class ProfessionalProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    category: Optional[CategoryEnum] = None
    primary_specialty: Optional[str] = None
    languages: Optional[List[str]] = None
    description: Optional[str] = None
    education: Optional[List[str]] = None
    experience: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    offers_free_consultations: Optional[bool] = None
    availability: Optional[List[AvailabilityWindow]] = None
    is_available_now: Optional[bool] = None


class MigrationReportDTO(BaseModel):
    total: int = 0
    migrated: int = 0
    skipped: int = 0
    errors: int = 0
    details: List[str] = Field(default_factory=list)


class SpecialtiesResponseDTO(BaseModel):
    category: CategoryEnum
    specialties: List[str]
