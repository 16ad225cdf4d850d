"""
Report and Laudo models
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from odontoforense.db.base import BaseModel
from odontoforense.utils.helpers import generate_id, utcnow


class Report(BaseModel):
    """Case-level expert opinion document"""
    __tablename__ = "reports"

    id = Column(String(32), primary_key=True, default=generate_id)
    case_id = Column(String(32), ForeignKey("cases.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    blob_id = Column(String(32), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    examiner_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    signature = Column(String(255))
    signed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def subject_id(self) -> str:
        return self.case_id


class Laudo(BaseModel):
    """Evidence-level expert opinion document"""
    __tablename__ = "laudos"

    id = Column(String(32), primary_key=True, default=generate_id)
    evidence_id = Column(String(32), ForeignKey("evidence.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    blob_id = Column(String(32), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    examiner_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    signature = Column(String(255))
    signed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def subject_id(self) -> str:
        return self.evidence_id
