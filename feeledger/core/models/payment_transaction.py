"""Payment transaction: a student's payment and the breakdown captured when it was recorded."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Numeric, String, Uuid

from feeledger.db.session import Base


class PaymentTransaction(Base):
    """Breakdown is written once at creation and never recalculated."""

    __tablename__ = "payment_transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)  # cash, bank, online
    remarks = Column(String(500), nullable=False, default="")
    breakdown = Column(JSON, nullable=False, default=list)  # [{"description": str, "amount": str}]
    paid_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
