"""Classes with their monthly tuition. Model named SchoolClass to avoid Python 'class' keyword."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Numeric, String, Uuid

from feeledger.db.session import Base


class SchoolClass(Base):
    """Class fee schedule. Fee edits apply to every month billed under the class."""

    __tablename__ = "classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False, unique=True)
    monthly_fee = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
