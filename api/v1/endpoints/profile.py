from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database.postgres import get_db
from dependencies.auth import CurrentUser, get_current_user, require_role
from schemas.enum import CategoryEnum, RoleEnum
from schemas.profile_schema import (
    CreateProfessionalDTO,
    MigrationReportDTO,
    ProfessionalProfileDTO,
    ProfessionalProfileUpdate,
    SpecialtiesResponseDTO,
)
from services.profile_service import (
    create_default_professional_profile,
    get_professional_profile,
    migrate_all_professionals,
    update_professional_profile,
)
from services.specialties import specialties_for

router = APIRouter(prefix="/professionals", tags=["Profile"])


@router.post("/migrate", response_model=MigrationReportDTO)
async def migrate_professionals(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.ADMIN))
):
    return await migrate_all_professionals(db)


@router.get("/specialties", response_model=SpecialtiesResponseDTO)
async def list_specialties(
    category: CategoryEnum = Query(...),
    current_user: CurrentUser = Depends(get_current_user)
):
    return SpecialtiesResponseDTO(category=category, specialties=specialties_for(category))


@router.post("/me/profile", response_model=ProfessionalProfileDTO, status_code=status.HTTP_201_CREATED)
async def create_my_profile(
    payload: CreateProfessionalDTO,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PROFESSIONAL))
):
    return await create_default_professional_profile(
        db,
        current_user.id,
        payload.name,
        payload.email,
        payload.category
    )


@router.get("/{professional_id}/profile", response_model=ProfessionalProfileDTO)
async def read_profile(
    professional_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    return await get_professional_profile(db, professional_id)


@router.put("/{professional_id}/profile", response_model=ProfessionalProfileDTO)
async def edit_profile(
    professional_id: str,
    payload: ProfessionalProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    if current_user.role != RoleEnum.ADMIN and current_user.id != professional_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit your own profile"
        )
    return await update_professional_profile(db, professional_id, payload)
