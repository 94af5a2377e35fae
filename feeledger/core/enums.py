from enum import Enum


class FeeCategory(str, Enum):
    TUITION = "tuition"
    EXAM = "exam"
    EVENT = "event"
    OTHER = "other"
    TRANSPORT = "transport"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK = "bank"
    ONLINE = "online"


class PeriodStatus(str, Enum):
    unpaid = "unpaid"
    partial = "partial"
    paid = "paid"


class ObligationKind(str, Enum):
    PERIOD = "PERIOD"
    ONE_OFF = "ONE_OFF"


class DataQualityFlag(str, Enum):
    """Fallback paths taken while computing dues. Reported, never raised."""

    HISTORY_FALLBACK = "HISTORY_FALLBACK"
    TIMELINE_TRUNCATED = "TIMELINE_TRUNCATED"
    ADMISSION_AFTER_END = "ADMISSION_AFTER_END"
    UNKNOWN_SCHEDULE = "UNKNOWN_SCHEDULE"
