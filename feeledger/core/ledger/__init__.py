"""Fee ledger engine: pure functions from enrollment, fees and payments to a dues snapshot."""

from .allocation import allocate, preview_allocation
from .promotion import promote_student
from .snapshot import compute_dues_snapshot, preview_payment
from .timeline import resolve_timeline

__all__ = [
    "allocate",
    "compute_dues_snapshot",
    "preview_allocation",
    "preview_payment",
    "promote_student",
    "resolve_timeline",
]
