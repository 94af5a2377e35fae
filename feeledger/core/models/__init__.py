from feeledger.core.models.school_class import SchoolClass
from feeledger.core.models.student import ClassHistoryRecord, Student
from feeledger.core.models.fee_item import FeeItem
from feeledger.core.models.payment_transaction import PaymentTransaction

__all__ = [
    "ClassHistoryRecord",
    "FeeItem",
    "PaymentTransaction",
    "SchoolClass",
    "Student",
]
