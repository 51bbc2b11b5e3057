import enum

class RoleEnum(str, enum.Enum):
    PATIENT = "patient"
    PROFESSIONAL = "professional"
    ADMIN = "admin"

class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class ConsultationType(str, enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"
    CHAT = "chat"

class ServiceType(str, enum.Enum):
    """Legacy ``type`` field of version-1 professional documents."""
    MENTAL = "mental"
    SEXUAL = "sexual"

class CategoryEnum(str, enum.Enum):
    MENTAL_HEALTH = "mental-health"
    SEXUAL_HEALTH = "sexual-health"

class RecurrenceFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

class WeekDay(str, enum.Enum):
    # Order matches date.isoweekday() % 7 (0 = Sunday)
    DIMANCHE = "Dimanche"
    LUNDI = "Lundi"
    MARDI = "Mardi"
    MERCREDI = "Mercredi"
    JEUDI = "Jeudi"
    VENDREDI = "Vendredi"
    SAMEDI = "Samedi"
