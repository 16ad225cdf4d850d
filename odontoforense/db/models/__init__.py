"""Database models"""

from odontoforense.db.models.user import User
from odontoforense.db.models.case import Case
from odontoforense.db.models.victim import Victim
from odontoforense.db.models.evidence import Evidence
from odontoforense.db.models.report import Report, Laudo
from odontoforense.db.models.audit_entry import AuditEntry
from odontoforense.db.models.blob import BlobFile, BlobChunk

__all__ = [
    "User",
    "Case",
    "Victim",
    "Evidence",
    "Report",
    "Laudo",
    "AuditEntry",
    "BlobFile",
    "BlobChunk",
]
