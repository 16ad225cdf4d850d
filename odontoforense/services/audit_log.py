"""
Append-only audit trail
"""
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from odontoforense.db.connection import DatabaseManager
from odontoforense.db.models.audit_entry import AuditEntry
from odontoforense.utils.exceptions import StorageError
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)


class AuditLog:
    """Records who did what to which entity; entries are never updated or deleted"""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def append(
        self,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        detail: Optional[str] = None,
    ) -> AuditEntry:
        """
        Append an entry; the write is committed before returning

        Args:
            user_id: acting user
            action: action label (e.g. "Report Created")
            entity_type: entity label (e.g. "Report")
            entity_id: id of the affected entity
            detail: free text

        Returns:
            The stored entry
        """
        entry = AuditEntry(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            detail=detail,
        )
        try:
            with self.db_manager.get_db_session() as session:
                session.add(entry)
        except SQLAlchemyError as e:
            raise StorageError(f"could not record audit entry: {str(e)}") from e

        logger.info(f"Audit: {action} {entity_type} {entity_id} by {user_id}")
        return entry

    def list(self, entity_type: Optional[str] = None, entity_id: Optional[str] = None) -> List[AuditEntry]:
        """Entries in insertion order, optionally filtered"""
        with self.db_manager.get_db_session() as session:
            query = session.query(AuditEntry)
            if entity_type:
                query = query.filter(AuditEntry.entity_type == entity_type)
            if entity_id:
                query = query.filter(AuditEntry.entity_id == entity_id)
            return query.order_by(AuditEntry.created_at).all()
