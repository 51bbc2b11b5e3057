import re
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import DEFAULT_CONSULTATION_PRICE, DEFAULT_CURRENCY
from core.exceptions import ProfileValidationError
from core.retry import with_store_retry
from schemas.enum import CategoryEnum, ServiceType
from schemas.profile_schema import (
    MigrationReportDTO,
    ProfessionalProfileDTO,
    ProfessionalProfileUpdate,
)
from schemas.schemas import ProfessionalProfile
from services.availability_service import get_profile_row, rebuild_windows, validate_windows
from services.slot_service import ensure_availability_format, needs_slot_backfill
from services.specialties import (
    DEFAULT_SPECIALTY,
    SERVICE_TYPE_CATEGORY,
    category_of,
    is_valid_category,
    is_valid_specialty,
    map_legacy_specialty,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CURRENT_SCHEMA_VERSION = 2


def migrate_specialty(row: ProfessionalProfile) -> Optional[Dict[str, str]]:
    """
    Category/specialty for a version-1 row, or ``None`` when the row is already
    canonical or nothing can be inferred from it.
    """
    if is_valid_category(row.category) and is_valid_specialty(row.primary_specialty):
        return None

    mapped = map_legacy_specialty(row.specialty)
    if mapped:
        return {"category": category_of(mapped).value, "primary_specialty": mapped}

    try:
        category = SERVICE_TYPE_CATEGORY[ServiceType(row.service_type)]
    except ValueError:
        return None
    return {"category": category.value, "primary_specialty": DEFAULT_SPECIALTY[category]}


def normalize_professional(row: ProfessionalProfile) -> ProfessionalProfileDTO:
    """Canonical view of a stored row, whichever schema version it was written with."""
    category = row.category
    primary_specialty = row.primary_specialty

    migration = migrate_specialty(row)
    if migration:
        category = migration["category"]
        primary_specialty = migration["primary_specialty"]

    return ProfessionalProfileDTO(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        email=row.email,
        category=category if is_valid_category(category) else None,
        primary_specialty=primary_specialty,
        languages=row.languages or [],
        description=row.description,
        education=row.education or [],
        experience=row.experience,
        price=float(row.price) if row.price is not None else None,
        currency=row.currency or DEFAULT_CURRENCY,
        offers_free_consultations=bool(row.offers_free_consultations),
        availability=ensure_availability_format(row.availability),
        is_available_now=bool(row.is_available_now),
        is_active=row.is_active if row.is_active is not None else True,
        is_approved=bool(row.is_approved),
        rating=row.rating if row.rating is not None else 5.0,
        reviews=row.reviews or 0,
        schema_version=CURRENT_SCHEMA_VERSION,
    )


def validate_professional_profile(data: Dict[str, Any]) -> List[str]:
    errors = []

    name = (data.get("name") or "").strip()
    if len(name) < 2:
        errors.append("Name must be at least 2 characters")

    email = data.get("email") or ""
    if not EMAIL_PATTERN.match(email):
        errors.append("Email is invalid")

    category = data.get("category")
    specialty = data.get("primary_specialty")
    if not is_valid_category(category):
        errors.append("Category is invalid")
    if not specialty:
        errors.append("Specialty is required")
    elif not is_valid_specialty(specialty):
        errors.append(f"Unknown specialty '{specialty}'")
    elif is_valid_category(category) and category_of(specialty).value != category:
        errors.append(f"Specialty '{specialty}' does not belong to category '{category}'")

    description = (data.get("description") or "").strip()
    if len(description) < 10:
        errors.append("Description must be at least 10 characters")

    if not data.get("languages"):
        errors.append("At least one language is required")

    return errors


@with_store_retry
async def get_professional_profile(db: AsyncSession, professional_id: str) -> ProfessionalProfileDTO:
    row = await get_profile_row(db, professional_id)
    return normalize_professional(row)


@with_store_retry
async def create_default_professional_profile(
    db: AsyncSession,
    user_id: str,
    name: str,
    email: str,
    category: CategoryEnum = CategoryEnum.MENTAL_HEALTH
) -> ProfessionalProfileDTO:
    existing = (
        await db.execute(select(ProfessionalProfile).where(ProfessionalProfile.user_id == user_id))
    ).scalars().first()
    if existing is not None:
        logger.info(f"Professional profile already exists for user {user_id}")
        return normalize_professional(existing)

    email_taken = (
        await db.execute(select(ProfessionalProfile.id).where(ProfessionalProfile.email == email))
    ).first()
    if email_taken is not None:
        raise ProfileValidationError(["Email is already used by another account"])

    row = ProfessionalProfile(
        id=user_id,
        user_id=user_id,
        name=name,
        email=email,
        schema_version=CURRENT_SCHEMA_VERSION,
        category=category.value,
        primary_specialty=DEFAULT_SPECIALTY[category],
        languages=["fr"],
        description="Professionnel de santé",
        education=[],
        experience="",
        price=DEFAULT_CONSULTATION_PRICE,
        currency=DEFAULT_CURRENCY,
        availability=[],
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)

    logger.info(f"Default professional profile created for user {user_id}")
    return normalize_professional(row)


@with_store_retry
async def update_professional_profile(
    db: AsyncSession,
    professional_id: str,
    updates: ProfessionalProfileUpdate
) -> ProfessionalProfileDTO:
    changes = updates.model_dump(exclude_unset=True)
    row = await get_profile_row(db, professional_id)
    current = normalize_professional(row)

    merged = current.model_dump(mode="json", exclude={"availability"})
    merged.update(updates.model_dump(mode="json", exclude_unset=True, exclude={"availability"}))
    errors = validate_professional_profile(merged)

    if updates.availability is not None:
        errors.extend(validate_windows(updates.availability))

    if errors:
        raise ProfileValidationError(errors)

    if updates.availability is not None:
        changes["availability"] = [w.to_document() for w in rebuild_windows(updates.availability)]
    if isinstance(changes.get("category"), CategoryEnum):
        changes["category"] = changes["category"].value

    # Persist the canonical specialty fields so the row stops being legacy
    if current.category and "category" not in changes:
        changes["category"] = current.category.value
    if current.primary_specialty and "primary_specialty" not in changes:
        changes["primary_specialty"] = current.primary_specialty

    for field, value in changes.items():
        setattr(row, field, value)
    row.schema_version = CURRENT_SCHEMA_VERSION

    await db.commit()
    await db.refresh(row)
    logger.info(f"Professional profile {professional_id} updated: {sorted(changes)}")
    return normalize_professional(row)


@with_store_retry
async def migrate_all_professionals(db: AsyncSession) -> MigrationReportDTO:
    """Rewrite every legacy professional row in the canonical shape."""
    report = MigrationReportDTO()

    rows = (await db.execute(select(ProfessionalProfile))).scalars().all()
    report.total = len(rows)

    for row in rows:
        try:
            migration = migrate_specialty(row)
            backfill = needs_slot_backfill(row.availability)
            if migration is None and not backfill and row.schema_version == CURRENT_SCHEMA_VERSION:
                report.skipped += 1
                continue

            if migration:
                row.category = migration["category"]
                row.primary_specialty = migration["primary_specialty"]
            if backfill:
                row.availability = [w.to_document() for w in ensure_availability_format(row.availability)]
            row.schema_version = CURRENT_SCHEMA_VERSION

            report.migrated += 1
            report.details.append(
                f"{row.name or row.id}: {row.specialty or row.service_type} -> "
                f"{row.category}/{row.primary_specialty}"
            )
        except Exception as e:
            report.errors += 1
            report.details.append(f"{row.name or row.id}: {e}")
            logger.error(f"Error migrating professional {row.id}: {e}")

    await db.commit()
    logger.info(
        f"Professional migration done: total={report.total} migrated={report.migrated} "
        f"skipped={report.skipped} errors={report.errors}"
    )
    return report
