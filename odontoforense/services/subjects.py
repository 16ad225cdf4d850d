"""
Report subjects

A report is written either about a whole case (with its evidence and victims)
or about a single piece of evidence (with its case as context). The subject
is captured as an immutable snapshot so generation and rendering run without
an open database session.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from odontoforense.db.models import Case, Evidence, Victim, User
from odontoforense.utils.constants import ReportKind


def _display_name(user: Optional[User]) -> Optional[str]:
    return user.name if user is not None else None


@dataclass(frozen=True)
class CaseView:
    id: str
    name: str
    location: Optional[str]
    description: Optional[str]
    category: Optional[str]
    status: Optional[str]
    opened_at: Optional[datetime]
    examiner_name: Optional[str]

    @classmethod
    def from_model(cls, case: Case) -> "CaseView":
        return cls(
            id=case.id,
            name=case.name,
            location=case.location,
            description=case.description,
            category=case.category,
            status=case.status,
            opened_at=case.opened_at,
            examiner_name=_display_name(case.examiner),
        )


@dataclass(frozen=True)
class EvidenceView:
    id: str
    case_id: str
    title: str
    category: Optional[str]
    description: Optional[str]
    collector_name: Optional[str]
    created_at: Optional[datetime]
    filename: Optional[str]
    mime_type: Optional[str]
    blob_id: str
    coordinates: Optional[Tuple[float, float]] = None

    @classmethod
    def from_model(cls, evidence: Evidence) -> "EvidenceView":
        coordinates = evidence.coordinates
        return cls(
            id=evidence.id,
            case_id=evidence.case_id,
            title=evidence.title,
            category=evidence.category,
            description=evidence.description,
            collector_name=_display_name(evidence.collector),
            created_at=evidence.created_at,
            filename=evidence.filename,
            mime_type=evidence.mime_type,
            blob_id=evidence.blob_id,
            coordinates=tuple(coordinates) if coordinates else None,
        )


@dataclass(frozen=True)
class VictimView:
    id: str
    nic: Optional[str]
    name: Optional[str]
    gender: Optional[str]
    age: Optional[int]
    cpf: Optional[str]
    address: Optional[str]
    ethnicity: Optional[str]
    anatomical_note: Optional[str]
    odontogram: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_model(cls, victim: Victim) -> "VictimView":
        return cls(
            id=victim.id,
            nic=victim.nic,
            name=victim.name,
            gender=victim.gender,
            age=victim.age,
            cpf=victim.cpf,
            address=victim.address,
            ethnicity=victim.ethnicity,
            anatomical_note=victim.anatomical_note,
            odontogram={key: list(teeth or []) for key, teeth in (victim.odontogram or {}).items()},
        )


@dataclass(frozen=True)
class CaseSubject:
    """Case-level report subject"""
    case: CaseView
    evidence: Tuple[EvidenceView, ...] = ()
    victims: Tuple[VictimView, ...] = ()

    kind = ReportKind.REPORT

    @property
    def subject_id(self) -> str:
        return self.case.id


@dataclass(frozen=True)
class EvidenceSubject:
    """Evidence-level (laudo) subject"""
    evidence: EvidenceView
    case: CaseView

    kind = ReportKind.LAUDO

    @property
    def subject_id(self) -> str:
        return self.evidence.id


ReportSubject = Union[CaseSubject, EvidenceSubject]
