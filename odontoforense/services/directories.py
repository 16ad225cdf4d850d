"""
Record lookups used by the services

Each directory wraps a session and exposes find_by_id / find_by_parent.
"""
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from odontoforense.db.models import User, Case, Evidence, Victim, Report, Laudo
from odontoforense.utils.constants import UserRole

ModelT = TypeVar("ModelT")


class Directory(Generic[ModelT]):
    """Lookup helper for one model"""

    model: Type[ModelT] = None
    parent_field: Optional[str] = None

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, record_id: str) -> Optional[ModelT]:
        if not record_id:
            return None
        return self.session.get(self.model, record_id)

    def find_by_parent(self, parent_id: str) -> List[ModelT]:
        column = getattr(self.model, self.parent_field)
        return (
            self.session.query(self.model)
            .filter(column == parent_id)
            .order_by(self.model.created_at)
            .all()
        )

    def find_all(self) -> List[ModelT]:
        return self.session.query(self.model).order_by(self.model.created_at).all()


class UserDirectory(Directory[User]):
    model = User

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == email).first()

    def find_by_cpf(self, cpf: str) -> Optional[User]:
        return self.session.query(User).filter(User.cpf == cpf).first()

    def find_examiners(self) -> List[User]:
        return (
            self.session.query(User)
            .filter(User.role == UserRole.EXAMINER.value)
            .order_by(User.name)
            .all()
        )


class CaseDirectory(Directory[Case]):
    model = Case

    def find_by_name(self, name: str) -> Optional[Case]:
        return self.session.query(Case).filter(Case.name == name).first()


class EvidenceDirectory(Directory[Evidence]):
    model = Evidence
    parent_field = "case_id"

    def find_by_blob_id(self, blob_id: str) -> Optional[Evidence]:
        return self.session.query(Evidence).filter(Evidence.blob_id == blob_id).first()


class VictimDirectory(Directory[Victim]):
    model = Victim
    parent_field = "case_id"

    def find_by_nic(self, nic: str) -> Optional[Victim]:
        return self.session.query(Victim).filter(Victim.nic == nic).first()


class ReportDirectory(Directory[Report]):
    model = Report
    parent_field = "case_id"

    def find_by_blob_id(self, blob_id: str) -> Optional[Report]:
        return self.session.query(Report).filter(Report.blob_id == blob_id).first()


class LaudoDirectory(Directory[Laudo]):
    model = Laudo
    parent_field = "evidence_id"

    def find_by_blob_id(self, blob_id: str) -> Optional[Laudo]:
        return self.session.query(Laudo).filter(Laudo.blob_id == blob_id).first()
