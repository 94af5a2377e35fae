"""Students and their append-only class history."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from feeledger.db.session import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False, index=True)
    roll_no = Column(String(30), nullable=False)
    name = Column(String(255), nullable=False)
    father_name = Column(String(255), nullable=True)
    contact = Column(String(30), nullable=True)
    address = Column(String(500), nullable=True)
    identity_no = Column(String(50), nullable=True)
    dob = Column(Date, nullable=True)
    admission_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    inactive_date = Column(Date, nullable=True)  # last attended; billing stops after this month
    transport_fee = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    class_history = relationship(
        "ClassHistoryRecord",
        order_by="ClassHistoryRecord.sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ClassHistoryRecord(Base):
    """One class transfer. Never updated; sequence keeps recording order for same-day ties."""

    __tablename__ = "class_history_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False)
    start_date = Column(Date, nullable=False)
    sequence = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
