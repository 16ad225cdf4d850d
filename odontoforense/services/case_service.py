"""
Case management
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from odontoforense.db.models import Case
from odontoforense.services.directories import CaseDirectory, UserDirectory
from odontoforense.utils.constants import CaseCategory, CaseStatus, UserRole
from odontoforense.utils.exceptions import DuplicateError, NotFoundError, ValidationError
from odontoforense.utils.helpers import utcnow
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)

DUPLICATE_NAME = "case name already exists"


class CaseService:
    """Create, read, update and delete cases"""

    def __init__(self, session: Session):
        self.session = session
        self.directory = CaseDirectory(session)

    def _check_examiner(self, examiner_id: str) -> None:
        examiner = UserDirectory(self.session).find_by_id(examiner_id)
        if examiner is None:
            raise ValidationError("examiner not found", field="examiner_id")
        if examiner.role != UserRole.EXAMINER.value:
            raise ValidationError("not an examiner", field="examiner_id")

    @staticmethod
    def _check_category(category: str) -> None:
        if category not in {c.value for c in CaseCategory}:
            raise ValidationError(f"invalid category: {category}", field="category")

    @staticmethod
    def _check_status(status: str) -> None:
        if status not in {s.value for s in CaseStatus}:
            raise ValidationError(f"invalid status: {status}", field="status")

    def _check_name(self, name: str, exclude_id: Optional[str] = None) -> None:
        existing = self.directory.find_by_name(name)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateError(DUPLICATE_NAME, field="name")

    def _commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateError(DUPLICATE_NAME, field="name") from e

    def create(
        self,
        name: str,
        location: str,
        description: str,
        category: str,
        examiner_id: str,
        status: str = CaseStatus.OPEN.value,
        opened_at: Optional[datetime] = None,
    ) -> Case:
        """
        Create a case

        Raises:
            ValidationError: unknown examiner, non-examiner, bad category or status
            DuplicateError: name already in use
        """
        self._check_category(category)
        self._check_status(status)
        self._check_examiner(examiner_id)
        self._check_name(name)

        case = Case(
            name=name,
            location=location,
            description=description,
            category=category,
            examiner_id=examiner_id,
            status=status,
            opened_at=opened_at or utcnow(),
        )
        self.session.add(case)
        self._commit()

        logger.info(f"Case created: {case.id} ({name})")
        return case

    def get(self, case_id: str) -> Case:
        case = self.directory.find_by_id(case_id)
        if case is None:
            raise NotFoundError("Case", case_id)
        return case

    def list(self) -> List[Case]:
        return self.directory.find_all()

    def update(self, case_id: str, changes: Dict[str, Any]) -> Case:
        """
        Apply changes to a case

        Args:
            case_id: case to update
            changes: any of name, location, description, category,
                examiner_id, status, opened_at
        """
        case = self.get(case_id)

        if "category" in changes:
            self._check_category(changes["category"])
        if "status" in changes:
            self._check_status(changes["status"])
        if "examiner_id" in changes:
            self._check_examiner(changes["examiner_id"])
        if "name" in changes:
            self._check_name(changes["name"], exclude_id=case.id)

        for field in ("name", "location", "description", "category", "examiner_id", "status", "opened_at"):
            if field in changes:
                setattr(case, field, changes[field])

        self._commit()
        logger.info(f"Case updated: {case.id}")
        return case

    def delete(self, case_id: str) -> None:
        """
        Delete a case; its victims, evidence and reports are left in place

        Raises:
            NotFoundError: unknown case
            ValidationError: the database enforces foreign keys and related
                records still reference the case
        """
        case = self.get(case_id)
        self.session.delete(case)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Case {case_id} not deleted, related records remain: {str(e)}")
            raise ValidationError("case still has related records", field="case_id") from e
        logger.info(f"Case deleted: {case_id}")
