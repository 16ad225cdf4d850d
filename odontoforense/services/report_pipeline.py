"""
Report and laudo generation pipeline

generate: validate examiner -> load subject -> generate narrative (fallback on
failure) -> render PDF -> store blob -> persist record -> audit.

sign: load record -> reload subject -> regenerate narrative -> render signed
PDF -> store new blob -> update record -> audit.

Each step commits on its own; no transaction spans the blob upload, the record
write and the audit entry. A record write that fails after the upload leaves
the uploaded blob orphaned.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Type, Union

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from odontoforense.db.connection import DatabaseManager
from odontoforense.db.models import Laudo, Report
from odontoforense.services.audit_log import AuditLog
from odontoforense.services.blob_store import BlobStore
from odontoforense.services.content_generator import ContentGenerator
from odontoforense.services.directories import (
    CaseDirectory,
    EvidenceDirectory,
    UserDirectory,
    VictimDirectory,
)
from odontoforense.services.document_renderer import DocumentRenderer
from odontoforense.services.prompt_builder import PromptBuilder
from odontoforense.services.subjects import (
    CaseSubject,
    CaseView,
    EvidenceSubject,
    EvidenceView,
    ReportSubject,
    VictimView,
)
from odontoforense.utils.constants import AuditAction, ReportKind, UserRole
from odontoforense.utils.exceptions import (
    BlobNotFoundError,
    GenerationError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from odontoforense.utils.helpers import unix_millis
from odontoforense.utils.logger import get_logger, log_execution_time

logger = get_logger(__name__)

ExpertDocument = Union[Report, Laudo]


def load_case_subject(session: Session, case_id: str) -> CaseSubject:
    """
    Load a case with all of its evidence and victims

    Raises:
        NotFoundError: when the case does not exist
    """
    case = CaseDirectory(session).find_by_id(case_id)
    if case is None:
        raise NotFoundError("Case", case_id)

    evidence = EvidenceDirectory(session).find_by_parent(case.id)
    victims = VictimDirectory(session).find_by_parent(case.id)

    return CaseSubject(
        case=CaseView.from_model(case),
        evidence=tuple(EvidenceView.from_model(item) for item in evidence),
        victims=tuple(VictimView.from_model(victim) for victim in victims),
    )


def load_evidence_subject(session: Session, evidence_id: str) -> EvidenceSubject:
    """
    Load a piece of evidence and its case

    Raises:
        NotFoundError: when the evidence or its case does not exist
    """
    evidence = EvidenceDirectory(session).find_by_id(evidence_id)
    if evidence is None:
        raise NotFoundError("Evidence", evidence_id)

    case = CaseDirectory(session).find_by_id(evidence.case_id)
    if case is None:
        raise NotFoundError("Associated case", evidence.case_id)

    return EvidenceSubject(
        evidence=EvidenceView.from_model(evidence),
        case=CaseView.from_model(case),
    )


@dataclass(frozen=True)
class DocumentKind:
    """How one kind of expert document maps onto the pipeline"""
    kind: ReportKind
    model: Type[ExpertDocument]
    entity_type: str
    subject_field: str
    subject_label: str
    created_action: AuditAction
    signed_action: AuditAction
    load_subject: Callable[[Session, str], ReportSubject]


REPORT = DocumentKind(
    kind=ReportKind.REPORT,
    model=Report,
    entity_type="Report",
    subject_field="case_id",
    subject_label="case",
    created_action=AuditAction.REPORT_CREATED,
    signed_action=AuditAction.REPORT_SIGNED,
    load_subject=load_case_subject,
)

LAUDO = DocumentKind(
    kind=ReportKind.LAUDO,
    model=Laudo,
    entity_type="Laudo",
    subject_field="evidence_id",
    subject_label="evidence",
    created_action=AuditAction.LAUDO_CREATED,
    signed_action=AuditAction.LAUDO_SIGNED,
    load_subject=load_evidence_subject,
)


class ReportPipeline:
    """Composes generation, rendering, storage and audit for expert documents"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        blob_store: BlobStore,
        content_generator: ContentGenerator,
        renderer: Optional[DocumentRenderer] = None,
        audit_log: Optional[AuditLog] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        sign_regenerates_content: Optional[bool] = None,
        retain_superseded_blobs: Optional[bool] = None,
    ):
        """
        Args:
            db_manager: database holding the records
            blob_store: storage for rendered PDFs
            content_generator: narrative generator
            renderer: PDF renderer (defaults to one reading images from blob_store)
            audit_log: audit trail (defaults to one on db_manager)
            prompt_builder: builder for fallback narratives
            sign_regenerates_content: regenerate the narrative when signing
            retain_superseded_blobs: keep the previous PDF when signing
        """
        self.db_manager = db_manager
        self.blob_store = blob_store
        self.content_generator = content_generator
        self.renderer = renderer or DocumentRenderer(blob_store)
        self.audit_log = audit_log or AuditLog(db_manager)
        self.prompt_builder = prompt_builder or content_generator.prompt_builder
        self.sign_regenerates_content = (
            settings.sign_regenerates_content if sign_regenerates_content is None else sign_regenerates_content
        )
        self.retain_superseded_blobs = (
            settings.retain_superseded_blobs if retain_superseded_blobs is None else retain_superseded_blobs
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    def _check_examiner(session: Session, examiner_id: str) -> None:
        examiner = UserDirectory(session).find_by_id(examiner_id)
        if examiner is None:
            raise ValidationError("examiner not found", field="examiner_id")
        if examiner.role != UserRole.EXAMINER.value:
            raise ValidationError("not an examiner", field="examiner_id")

    def _narrate(self, subject: ReportSubject) -> str:
        """Generated narrative, or the deterministic fallback when generation fails"""
        try:
            return self.content_generator.generate(subject)
        except GenerationError as e:
            logger.warning(
                f"Using fallback narrative for {subject.kind.value} {subject.subject_id}: {str(e)}"
            )
            return self.prompt_builder.build_fallback(subject)

    def _store_pdf(self, kind: DocumentKind, subject_id: str, pdf: bytes, signed: bool) -> tuple:
        marker = "-signed" if signed else ""
        filename = f"{kind.kind.value}-{subject_id}{marker}-{unix_millis()}.pdf"
        blob_id = self.blob_store.put(pdf, filename, {kind.subject_field: subject_id})
        return blob_id, filename

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _generate(
        self,
        kind: DocumentKind,
        subject_id: str,
        title: Optional[str],
        examiner_id: str,
        actor_id: str,
    ) -> ExpertDocument:
        with self.db_manager.get_db_session() as session:
            self._check_examiner(session, examiner_id)
            subject = kind.load_subject(session, subject_id)

        if not title:
            title = f"Case Report - {subject.case.name}"

        narrative = self._narrate(subject)
        pdf = self.renderer.render(title, subject, narrative)
        blob_id, filename = self._store_pdf(kind, subject_id, pdf, signed=False)

        record = kind.model(
            title=title,
            content=narrative,
            blob_id=blob_id,
            filename=filename,
            examiner_id=examiner_id,
            signed=False,
        )
        setattr(record, kind.subject_field, subject_id)

        try:
            with self.db_manager.get_db_session() as session:
                session.add(record)
        except SQLAlchemyError as e:
            logger.error(f"{kind.entity_type} persistence failed, blob {blob_id} is orphaned")
            raise StorageError(f"could not save {kind.entity_type.lower()}: {str(e)}") from e

        self.audit_log.append(
            user_id=actor_id,
            action=kind.created_action.value,
            entity_type=kind.entity_type,
            entity_id=record.id,
            detail=f'{kind.entity_type} "{title}" created for {kind.subject_label} {subject_id}',
        )
        logger.info(f"{kind.entity_type} created: {record.id} ({filename})")
        return record

    def _sign(self, kind: DocumentKind, record_id: str, signature: str, actor_id: str) -> ExpertDocument:
        if not signature or not signature.strip():
            raise ValidationError("signature is required", field="signature")

        with self.db_manager.get_db_session() as session:
            record = session.get(kind.model, record_id)
            if record is None:
                raise NotFoundError(kind.entity_type, record_id)
            subject_id = getattr(record, kind.subject_field)
            subject = kind.load_subject(session, subject_id)

        if self.sign_regenerates_content:
            narrative = self._narrate(subject)
        else:
            narrative = record.content

        pdf = self.renderer.render(record.title, subject, narrative, signature)
        blob_id, filename = self._store_pdf(kind, subject_id, pdf, signed=True)

        try:
            with self.db_manager.get_db_session() as session:
                current = session.get(kind.model, record_id)
                if current is None:
                    raise NotFoundError(kind.entity_type, record_id)
                superseded_blob_id = current.blob_id
                current.content = narrative
                current.blob_id = blob_id
                current.filename = filename
                current.signature = signature
                current.signed = True
        except SQLAlchemyError as e:
            logger.error(f"{kind.entity_type} update failed, blob {blob_id} is orphaned")
            raise StorageError(f"could not sign {kind.entity_type.lower()}: {str(e)}") from e

        if not self.retain_superseded_blobs and superseded_blob_id != blob_id:
            self._discard_blob(superseded_blob_id)

        self.audit_log.append(
            user_id=actor_id,
            action=kind.signed_action.value,
            entity_type=kind.entity_type,
            entity_id=current.id,
            detail=f'{kind.entity_type} "{current.title}" signed for {kind.subject_label} {subject_id}',
        )
        logger.info(f"{kind.entity_type} signed: {current.id} ({filename})")
        return current

    def _discard_blob(self, blob_id: str) -> None:
        try:
            self.blob_store.delete(blob_id)
        except BlobNotFoundError:
            logger.warning(f"Superseded blob already gone: {blob_id}")
        except StorageError as e:
            logger.warning(f"Superseded blob could not be deleted: {blob_id} - {str(e)}")

    @log_execution_time()
    def generate_report(
        self,
        case_id: str,
        examiner_id: str,
        actor_id: str,
        title: Optional[str] = None,
    ) -> Report:
        """
        Generate a case-level report

        Args:
            case_id: case the report covers
            examiner_id: responsible examiner
            actor_id: authenticated user performing the action
            title: report title (defaults to "Case Report - <case name>")

        Returns:
            The persisted, unsigned report

        Raises:
            ValidationError: unknown examiner or user is not an examiner
            NotFoundError: unknown case
            StorageError: the PDF or the record could not be stored
        """
        return self._generate(REPORT, case_id, title, examiner_id, actor_id)

    @log_execution_time()
    def generate_laudo(self, evidence_id: str, title: str, examiner_id: str, actor_id: str) -> Laudo:
        """
        Generate an evidence-level laudo

        Raises:
            ValidationError: missing title, unknown examiner or not an examiner
            NotFoundError: unknown evidence or case
            StorageError: the PDF or the record could not be stored
        """
        if not title or not title.strip():
            raise ValidationError("title is required", field="title")
        return self._generate(LAUDO, evidence_id, title, examiner_id, actor_id)

    @log_execution_time()
    def sign_report(self, report_id: str, signature: str, actor_id: str) -> Report:
        """
        Sign a report, regenerating its narrative and PDF

        Every call stores a new PDF; the previous one is kept unless
        retain_superseded_blobs is off.
        """
        return self._sign(REPORT, report_id, signature, actor_id)

    @log_execution_time()
    def sign_laudo(self, laudo_id: str, signature: str, actor_id: str) -> Laudo:
        """Sign a laudo, regenerating its narrative and PDF"""
        return self._sign(LAUDO, laudo_id, signature, actor_id)
