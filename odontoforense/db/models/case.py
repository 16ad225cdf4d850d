"""
Case model
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from odontoforense.db.base import BaseModel
from odontoforense.utils.constants import CaseStatus
from odontoforense.utils.helpers import generate_id, utcnow


class Case(BaseModel):
    """Forensic investigation grouping victims and evidence"""
    __tablename__ = "cases"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False, unique=True)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)
    examiner_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    status = Column(String(20), nullable=False, default=CaseStatus.OPEN.value)
    opened_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    examiner = relationship("User")
