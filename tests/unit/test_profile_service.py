"""Tests for professional profile normalisation, validation and migration."""

import pytest

from core.exceptions import NotFoundError, ProfileValidationError
from schemas.availability_schema import AvailabilityWindow
from schemas.enum import CategoryEnum
from schemas.profile_schema import ProfessionalProfileUpdate
from schemas.schemas import ProfessionalProfile
from services.profile_service import (
    create_default_professional_profile,
    get_professional_profile,
    migrate_all_professionals,
    migrate_specialty,
    normalize_professional,
    update_professional_profile,
    validate_professional_profile,
)
from services.specialties import map_legacy_specialty, specialties_for


def legacy(**overrides) -> ProfessionalProfile:
    fields = dict(
        id="legacy-1",
        user_id="legacy-1",
        name="Dr Fatou Sow",
        email="fatou@example.com",
        schema_version=1,
        specialty="Psychologue",
        service_type="mental",
        category=None,
        primary_specialty=None,
        languages=["fr"],
        description="Accompagnement psychologique",
        availability=[{"day": "Lundi", "startTime": "09:00", "endTime": "10:00"}],
    )
    fields.update(overrides)
    return ProfessionalProfile(**fields)


def valid_profile(**overrides) -> dict:
    data = dict(
        name="Dr Awa Ndiaye",
        email="awa@example.com",
        category="mental-health",
        primary_specialty="psychiatre",
        description="Psychiatre à Dakar depuis dix ans",
        languages=["fr", "wo"],
    )
    data.update(overrides)
    return data


class TestSpecialties:
    def test_legacy_mapping(self):
        assert map_legacy_specialty("Psychologie") == "psychologue-clinicien"
        assert map_legacy_specialty(" Sexologue ") == "sexologue-clinique"
        assert map_legacy_specialty("Gynécologie") == "gynecologue"
        assert map_legacy_specialty("psychiatre") == "psychiatre"

    def test_unknown_legacy_specialty(self):
        assert map_legacy_specialty("Astrologue") is None
        assert map_legacy_specialty(None) is None

    def test_catalogue_split(self):
        assert "psychiatre" in specialties_for(CategoryEnum.MENTAL_HEALTH)
        assert "sage-femme" in specialties_for(CategoryEnum.SEXUAL_HEALTH)
        assert "sage-femme" not in specialties_for(CategoryEnum.MENTAL_HEALTH)


class TestNormalizeProfessional:
    """Tests for reading version-1 and version-2 rows into one shape."""

    def test_legacy_specialty_is_mapped(self):
        profile = normalize_professional(legacy(specialty="Urologie", service_type="sexual"))
        assert profile.category == CategoryEnum.SEXUAL_HEALTH
        assert profile.primary_specialty == "urologue"
        assert profile.schema_version == 2

    def test_defaults_from_legacy_type(self):
        assert normalize_professional(legacy(specialty="Autre")).primary_specialty == "psychologue-clinicien"
        sexual = normalize_professional(legacy(specialty=None, service_type="sexual"))
        assert sexual.category == CategoryEnum.SEXUAL_HEALTH
        assert sexual.primary_specialty == "sexologue-clinique"

    def test_current_row_untouched(self):
        row = legacy(category="mental-health", primary_specialty="addictologue", schema_version=2)
        assert migrate_specialty(row) is None
        assert normalize_professional(row).primary_specialty == "addictologue"

    def test_availability_backfilled(self):
        profile = normalize_professional(legacy())
        assert profile.availability[0].slots == ["09:00", "09:30"]

    def test_nothing_to_infer(self):
        profile = normalize_professional(legacy(specialty=None, service_type=None))
        assert profile.category is None
        assert profile.primary_specialty is None


class TestValidateProfessionalProfile:
    def test_valid(self):
        assert validate_professional_profile(valid_profile()) == []

    def test_every_rule(self):
        errors = validate_professional_profile(valid_profile(
            name="A",
            email="not-an-email",
            description="court",
            languages=[],
        ))
        assert len(errors) == 4

    def test_specialty_must_match_category(self):
        errors = validate_professional_profile(valid_profile(primary_specialty="sage-femme"))
        assert errors == ["Specialty 'sage-femme' does not belong to category 'mental-health'"]

    def test_missing_specialty(self):
        assert "Specialty is required" in validate_professional_profile(valid_profile(primary_specialty=None))

    def test_unknown_category(self):
        assert "Category is invalid" in validate_professional_profile(valid_profile(category="dentaire"))


class TestProfileStore:
    @pytest.mark.asyncio
    async def test_create_default_profile(self, session):
        profile = await create_default_professional_profile(
            session, "user-9", "Dr Ibrahima Fall", "ibrahima@example.com", CategoryEnum.SEXUAL_HEALTH
        )
        assert profile.id == "user-9"
        assert profile.primary_specialty == "sexologue-clinique"
        assert profile.price == 25000
        assert profile.currency == "XOF"
        assert profile.availability == []

    @pytest.mark.asyncio
    async def test_create_is_idempotent_per_user(self, session):
        first = await create_default_professional_profile(session, "user-9", "Dr Fall", "fall@example.com")
        again = await create_default_professional_profile(session, "user-9", "Dr Fall", "fall@example.com")
        assert first.id == again.id

    @pytest.mark.asyncio
    async def test_email_must_be_unique(self, session, professional):
        with pytest.raises(ProfileValidationError):
            await create_default_professional_profile(session, "user-9", "Dr Autre", professional.email)

    @pytest.mark.asyncio
    async def test_get_missing_profile(self, session):
        with pytest.raises(NotFoundError):
            await get_professional_profile(session, "ghost")

    @pytest.mark.asyncio
    async def test_inconsistent_update_rejected_before_write(self, session, professional):
        with pytest.raises(ProfileValidationError):
            await update_professional_profile(
                session, professional.id,
                ProfessionalProfileUpdate(name="Nouveau nom", primary_specialty="gynecologue"),
            )
        profile = await get_professional_profile(session, professional.id)
        assert profile.name == "Dr Awa Ndiaye"
        assert profile.primary_specialty == "psychologue-clinicien"

    @pytest.mark.asyncio
    async def test_incomplete_profile_rejected_before_write(self, session, professional):
        with pytest.raises(ProfileValidationError) as exc_info:
            await update_professional_profile(
                session, professional.id,
                ProfessionalProfileUpdate(name="", description="x", languages=[]),
            )
        assert len(exc_info.value.errors) == 3

        row = await session.get(ProfessionalProfile, professional.id)
        await session.refresh(row)
        assert row.name == "Dr Awa Ndiaye"
        assert row.description == "Psychologue clinicienne à Dakar"
        assert row.languages == ["fr"]

    @pytest.mark.asyncio
    async def test_category_switch_with_specialty(self, session, professional):
        profile = await update_professional_profile(
            session, professional.id,
            ProfessionalProfileUpdate(category=CategoryEnum.SEXUAL_HEALTH, primary_specialty="gynecologue"),
        )
        assert profile.category == CategoryEnum.SEXUAL_HEALTH
        assert profile.primary_specialty == "gynecologue"

    @pytest.mark.asyncio
    async def test_availability_update_regenerates_slots(self, session, professional):
        profile = await update_professional_profile(
            session, professional.id,
            ProfessionalProfileUpdate(availability=[
                AvailabilityWindow(day="Vendredi", start_time="16:00", end_time="17:00"),
            ]),
        )
        assert profile.availability[0].slots == ["16:00", "16:30"]

    @pytest.mark.asyncio
    async def test_update_persists_legacy_specialty(self, session):
        session.add(legacy())
        await session.commit()

        await update_professional_profile(session, "legacy-1", ProfessionalProfileUpdate(experience="10 ans"))

        row = await session.get(ProfessionalProfile, "legacy-1")
        assert row.category == "mental-health"
        assert row.primary_specialty == "psychologue-clinicien"
        assert row.schema_version == 2


class TestMigrateAllProfessionals:
    @pytest.mark.asyncio
    async def test_report(self, session, professional):
        session.add_all([
            legacy(id="l1", user_id="l1", email="l1@example.com", specialty="Sexologie", service_type="sexual"),
            legacy(id="l2", user_id="l2", email="l2@example.com", specialty=None),
        ])
        await session.commit()

        report = await migrate_all_professionals(session)

        assert report.total == 3
        # The seeded professional only needed its slots backfilled
        assert report.migrated == 3
        assert report.skipped == 0
        assert report.errors == 0

        l1 = await session.get(ProfessionalProfile, "l1")
        assert l1.category == "sexual-health"
        assert l1.primary_specialty == "sexologue-clinique"
        assert l1.availability[0]["slots"] == ["09:00", "09:30"]

    @pytest.mark.asyncio
    async def test_second_run_skips_everything(self, session):
        session.add(legacy())
        await session.commit()

        await migrate_all_professionals(session)
        report = await migrate_all_professionals(session)

        assert report.total == 1
        assert report.migrated == 0
        assert report.skipped == 1
