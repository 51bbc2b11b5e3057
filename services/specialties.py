from typing import Dict, List, Optional

from schemas.enum import CategoryEnum, ServiceType

SPECIALTIES: Dict[str, CategoryEnum] = {
    # Mental health
    "psychiatre": CategoryEnum.MENTAL_HEALTH,
    "psychologue-clinicien": CategoryEnum.MENTAL_HEALTH,
    "psychotherapeute-agree": CategoryEnum.MENTAL_HEALTH,
    "neuropsychologue": CategoryEnum.MENTAL_HEALTH,
    "addictologue": CategoryEnum.MENTAL_HEALTH,
    "pedopsychiatre": CategoryEnum.MENTAL_HEALTH,
    "gerontopsychiatre": CategoryEnum.MENTAL_HEALTH,
    "infirmier-sante-mentale": CategoryEnum.MENTAL_HEALTH,
    "coach-developpement-personnel": CategoryEnum.MENTAL_HEALTH,
    "conseiller-orientation": CategoryEnum.MENTAL_HEALTH,
    "travailleur-social-sante-mentale": CategoryEnum.MENTAL_HEALTH,
    "pair-aidant": CategoryEnum.MENTAL_HEALTH,
    "medecin-generaliste-mental": CategoryEnum.MENTAL_HEALTH,
    # Sexual health
    "gynecologue": CategoryEnum.SEXUAL_HEALTH,
    "urologue": CategoryEnum.SEXUAL_HEALTH,
    "sexologue-clinique": CategoryEnum.SEXUAL_HEALTH,
    "sage-femme": CategoryEnum.SEXUAL_HEALTH,
    "dermato-venerologue": CategoryEnum.SEXUAL_HEALTH,
    "endocrinologue": CategoryEnum.SEXUAL_HEALTH,
    "andrologue": CategoryEnum.SEXUAL_HEALTH,
    "medecin-generaliste-sexuelle": CategoryEnum.SEXUAL_HEALTH,
    "conseiller-planning-familial": CategoryEnum.SEXUAL_HEALTH,
    "educateur-sante-sexuelle": CategoryEnum.SEXUAL_HEALTH,
    "psychologue-sexologie": CategoryEnum.SEXUAL_HEALTH,
    "travailleur-social-sante-sexuelle": CategoryEnum.SEXUAL_HEALTH,
    "mediateur-familial": CategoryEnum.SEXUAL_HEALTH,
}

# Free-text specialties found on version-1 documents
LEGACY_SPECIALTY_MAPPING: Dict[str, str] = {
    "psychologie": "psychologue-clinicien",
    "psychiatrie": "psychiatre",
    "psychologue": "psychologue-clinicien",
    "psychologue clinicien": "psychologue-clinicien",
    "psychologue clinicienne": "psychologue-clinicien",
    "psychologue-clinicienne": "psychologue-clinicien",
    "psychothérapeute": "psychotherapeute-agree",
    "psychothérapeute agréé": "psychotherapeute-agree",
    "psychotherapeute": "psychotherapeute-agree",
    "pédopsychiatre": "pedopsychiatre",
    "gérontopsychiatre": "gerontopsychiatre",
    "infirmier santé mentale": "infirmier-sante-mentale",
    "coach développement personnel": "coach-developpement-personnel",
    "conseiller orientation": "conseiller-orientation",
    "travailleur social santé mentale": "travailleur-social-sante-mentale",
    "pair aidant": "pair-aidant",
    "médecin généraliste": "medecin-generaliste-mental",
    "medecin generaliste": "medecin-generaliste-mental",
    "médecin généraliste santé mentale": "medecin-generaliste-mental",
    "sexologie": "sexologue-clinique",
    "sexologue": "sexologue-clinique",
    "sexologue clinique": "sexologue-clinique",
    "sexologue clinicien": "sexologue-clinique",
    "sexologue-clinicien": "sexologue-clinique",
    "gynécologie": "gynecologue",
    "gynecologie": "gynecologue",
    "gynécologue": "gynecologue",
    "urologie": "urologue",
    "sage femme": "sage-femme",
    "dermatologue": "dermato-venerologue",
    "dermatologue-vénéréologue": "dermato-venerologue",
    "médecin généraliste santé sexuelle": "medecin-generaliste-sexuelle",
    "conseiller planning familial": "conseiller-planning-familial",
    "éducateur santé sexuelle": "educateur-sante-sexuelle",
    "psychologue sexologie": "psychologue-sexologie",
    "travailleur social santé sexuelle": "travailleur-social-sante-sexuelle",
    "médiateur familial": "mediateur-familial",
}

DEFAULT_SPECIALTY: Dict[CategoryEnum, str] = {
    CategoryEnum.MENTAL_HEALTH: "psychologue-clinicien",
    CategoryEnum.SEXUAL_HEALTH: "sexologue-clinique",
}

SERVICE_TYPE_CATEGORY: Dict[ServiceType, CategoryEnum] = {
    ServiceType.MENTAL: CategoryEnum.MENTAL_HEALTH,
    ServiceType.SEXUAL: CategoryEnum.SEXUAL_HEALTH,
}


def is_valid_category(value: Optional[str]) -> bool:
    return value in {c.value for c in CategoryEnum}


def is_valid_specialty(key: Optional[str]) -> bool:
    return key in SPECIALTIES


def category_of(key: str) -> Optional[CategoryEnum]:
    return SPECIALTIES.get(key)


def specialties_for(category: CategoryEnum) -> List[str]:
    return [key for key, cat in SPECIALTIES.items() if cat == category]


def map_legacy_specialty(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    normalized = text.lower().strip()
    if normalized in SPECIALTIES:
        return normalized
    return LEGACY_SPECIALTY_MAPPING.get(normalized)
