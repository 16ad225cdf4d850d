"""
Victim records
"""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from odontoforense.db.models import Victim
from odontoforense.db.models.victim import empty_odontogram
from odontoforense.services.directories import CaseDirectory, VictimDirectory
from odontoforense.utils.constants import NIC_MAX_ATTEMPTS, ODONTOGRAM_QUADRANTS, Ethnicity
from odontoforense.utils.exceptions import DuplicateError, NotFoundError, StorageError, ValidationError
from odontoforense.utils.helpers import generate_nic
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)

VICTIM_FIELDS = ("name", "gender", "age", "cpf", "address", "ethnicity", "anatomical_note")


def normalize_odontogram(odontogram: Optional[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Keep the four known quadrants, each as a list of strings

    Raises:
        ValidationError: unknown quadrant or non-list value
    """
    result = empty_odontogram()
    if not odontogram:
        return result

    known = {key for key, _ in ODONTOGRAM_QUADRANTS}
    for key, teeth in odontogram.items():
        if key not in known:
            raise ValidationError(f"unknown odontogram quadrant: {key}", field="odontogram")
        if not isinstance(teeth, list):
            raise ValidationError(f"odontogram quadrant {key} must be a list", field="odontogram")
        result[key] = [str(tooth) for tooth in teeth]
    return result


class VictimService:
    """Create, read, update and delete victims"""

    def __init__(self, session: Session):
        self.session = session
        self.directory = VictimDirectory(session)

    def generate_unique_nic(self, max_attempts: int = NIC_MAX_ATTEMPTS) -> str:
        """
        Draw 8 digit identifiers until one is not in use

        Raises:
            StorageError: when no free identifier is found within max_attempts
        """
        for _ in range(max_attempts):
            nic = generate_nic()
            if self.directory.find_by_nic(nic) is None:
                return nic
        raise StorageError(f"could not allocate a unique NIC after {max_attempts} attempts")

    @staticmethod
    def _check_ethnicity(ethnicity: Optional[str]) -> None:
        if ethnicity is not None and ethnicity not in {e.value for e in Ethnicity}:
            raise ValidationError(f"invalid ethnicity: {ethnicity}", field="ethnicity")

    def create(self, case_id: str, data: Dict[str, Any]) -> Victim:
        """
        Create a victim under a case

        Args:
            case_id: owning case
            data: victim fields; anatomical_note is required, nic and the
                demographic fields are optional

        Raises:
            NotFoundError: unknown case
            ValidationError: missing anatomical note, bad ethnicity or odontogram
            DuplicateError: an explicit nic is already in use
        """
        if CaseDirectory(self.session).find_by_id(case_id) is None:
            raise NotFoundError("Case", case_id)
        if not (data.get("anatomical_note") or "").strip():
            raise ValidationError("anatomical_note is required", field="anatomical_note")
        self._check_ethnicity(data.get("ethnicity"))

        odontogram = normalize_odontogram(data.get("odontogram"))
        fields = {field: data[field] for field in VICTIM_FIELDS if data.get(field) is not None}

        explicit_nic = data.get("nic")
        if explicit_nic and self.directory.find_by_nic(explicit_nic) is not None:
            raise DuplicateError("NIC already in use", field="nic")

        # A generated NIC can still be taken between the check and the commit;
        # draw again in that case
        attempts = 1 if explicit_nic else NIC_MAX_ATTEMPTS
        for _ in range(attempts):
            nic = explicit_nic or self.generate_unique_nic()
            victim = Victim(case_id=case_id, nic=nic, odontogram=dict(odontogram), **fields)
            self.session.add(victim)
            try:
                self.session.commit()
            except IntegrityError as e:
                self.session.rollback()
                if explicit_nic:
                    raise DuplicateError("NIC already in use", field="nic") from e
                logger.warning(f"Generated NIC {nic} taken concurrently, drawing another")
                continue

            logger.info(f"Victim created: {victim.id} (NIC {victim.nic}) for case {case_id}")
            return victim

        raise StorageError(f"could not allocate a unique NIC after {attempts} attempts")

    def get(self, victim_id: str) -> Victim:
        victim = self.directory.find_by_id(victim_id)
        if victim is None:
            raise NotFoundError("Victim", victim_id)
        return victim

    def list(self, case_id: Optional[str] = None) -> List[Victim]:
        if case_id:
            return self.directory.find_by_parent(case_id)
        return self.directory.find_all()

    def page(self, page: int, size: int, case_id: Optional[str] = None) -> Tuple[int, List[Victim]]:
        """
        One page of victims, newest last

        Args:
            page: 1-based page number
            size: page size
            case_id: optional case filter

        Returns:
            (total matching victims, victims on the page)
        """
        if page < 1 or size < 1:
            raise ValidationError("page and size must be positive")

        query = self.session.query(Victim)
        if case_id:
            query = query.filter(Victim.case_id == case_id)

        total = query.count()
        items = query.order_by(Victim.created_at).offset((page - 1) * size).limit(size).all()
        return total, items

    def update(self, victim_id: str, changes: Dict[str, Any]) -> Victim:
        victim = self.get(victim_id)

        if "anatomical_note" in changes and not (changes["anatomical_note"] or "").strip():
            raise ValidationError("anatomical_note is required", field="anatomical_note")
        self._check_ethnicity(changes.get("ethnicity"))

        for field in VICTIM_FIELDS:
            # age is the only nullable demographic field
            if field in changes and (changes[field] is not None or field == "age"):
                setattr(victim, field, changes[field])
        if "odontogram" in changes:
            victim.odontogram = normalize_odontogram(changes["odontogram"])

        self.session.commit()
        logger.info(f"Victim updated: {victim.id}")
        return victim

    def delete(self, victim_id: str) -> None:
        victim = self.get(victim_id)
        self.session.delete(victim)
        self.session.commit()
        logger.info(f"Victim deleted: {victim_id}")
