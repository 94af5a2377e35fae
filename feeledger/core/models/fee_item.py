"""One-off fee charged to a single student (exam, event, other)."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Uuid

from feeledger.core.enums import FeeCategory
from feeledger.db.session import Base


class FeeItem(Base):
    __tablename__ = "fee_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(20), nullable=False, default=FeeCategory.OTHER.value)
    title = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    month_year = Column(String(7), nullable=True)  # e.g. 2024-03
    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
