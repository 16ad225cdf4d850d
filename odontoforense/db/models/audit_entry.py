"""
AuditEntry model
"""
from sqlalchemy import Column, String, Text, DateTime
from odontoforense.db.base import BaseModel
from odontoforense.utils.helpers import generate_id, utcnow


class AuditEntry(BaseModel):
    """Append-only trail of pipeline actions"""
    __tablename__ = "audit_entries"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), nullable=False, index=True)
    action = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(32), nullable=False, index=True)
    detail = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)
