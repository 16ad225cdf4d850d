"""
Evidence records and their stored files
"""
import json
import mimetypes
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from config.settings import settings
from odontoforense.db.models import Evidence
from odontoforense.services.blob_store import BlobStore
from odontoforense.services.directories import CaseDirectory, EvidenceDirectory
from odontoforense.utils.constants import EvidenceCategory
from odontoforense.utils.exceptions import BlobNotFoundError, NotFoundError, StorageError, ValidationError
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def parse_location(raw: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """
    Parse a location form field

    Accepts "[lon, lat]" or '{"coordinates": [lon, lat]}' (a GeoJSON point).

    Returns:
        (longitude, latitude), or (None, None) when raw is empty

    Raises:
        ValidationError: when the value cannot be read as a coordinate pair
    """
    if raw is None or not raw.strip():
        return None, None

    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError("location must be JSON", field="location") from e

    if isinstance(value, dict):
        value = value.get("coordinates")

    if not isinstance(value, list) or len(value) != 2:
        raise ValidationError("location must be a [longitude, latitude] pair", field="location")

    try:
        longitude, latitude = float(value[0]), float(value[1])
    except (TypeError, ValueError) as e:
        raise ValidationError("location coordinates must be numbers", field="location") from e

    if not (-180 <= longitude <= 180 and -90 <= latitude <= 90):
        raise ValidationError("location coordinates out of range", field="location")
    return longitude, latitude


def resolve_mime_type(filename: str, content_type: Optional[str]) -> str:
    if content_type and content_type != DEFAULT_MIME_TYPE:
        return content_type
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or DEFAULT_MIME_TYPE


class EvidenceService:
    """Create, read, update and delete evidence"""

    def __init__(self, session: Session, blob_store: BlobStore):
        self.session = session
        self.blob_store = blob_store
        self.directory = EvidenceDirectory(session)

    @staticmethod
    def _check_category(category: str) -> None:
        if category not in {c.value for c in EvidenceCategory}:
            raise ValidationError(f"invalid category: {category}", field="category")

    @staticmethod
    def _check_size(content: bytes) -> None:
        if not content:
            raise ValidationError("file is empty", field="file")
        if len(content) > settings.max_file_size_bytes:
            raise ValidationError(
                f"file exceeds the {settings.max_file_size_mb}MB limit", field="file"
            )

    def create(
        self,
        case_id: str,
        title: str,
        category: str,
        content: bytes,
        filename: str,
        content_type: Optional[str],
        collected_by: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Evidence:
        """
        Store an evidence file and its record

        The file is uploaded before the record is written; a failed record
        write leaves the uploaded file behind.

        Raises:
            NotFoundError: unknown case
            ValidationError: bad category, location or file
            StorageError: upload failure
        """
        if CaseDirectory(self.session).find_by_id(case_id) is None:
            raise NotFoundError("Case", case_id)
        if not (title or "").strip():
            raise ValidationError("title is required", field="title")
        self._check_category(category)
        self._check_size(content)
        longitude, latitude = parse_location(location)

        blob_id = self.blob_store.put(content, filename, {"case_id": case_id, "category": category})

        evidence = Evidence(
            case_id=case_id,
            title=title,
            blob_id=blob_id,
            filename=filename,
            mime_type=resolve_mime_type(filename, content_type),
            category=category,
            description=description,
            longitude=longitude,
            latitude=latitude,
            collected_by=collected_by,
        )
        self.session.add(evidence)
        self.session.commit()

        logger.info(f"Evidence created: {evidence.id} ({filename}) for case {case_id}")
        return evidence

    def get(self, evidence_id: str) -> Evidence:
        evidence = self.directory.find_by_id(evidence_id)
        if evidence is None:
            raise NotFoundError("Evidence", evidence_id)
        return evidence

    def list(self, case_id: Optional[str] = None) -> List[Evidence]:
        if case_id:
            return self.directory.find_by_parent(case_id)
        return self.directory.find_all()

    def get_by_blob_id(self, blob_id: str) -> Evidence:
        evidence = self.directory.find_by_blob_id(blob_id)
        if evidence is None:
            raise NotFoundError("Evidence", blob_id)
        return evidence

    def update(
        self,
        evidence_id: str,
        changes: Dict[str, Any],
        content: Optional[bytes] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Evidence:
        """
        Update evidence fields, optionally replacing the stored file

        A replacement file is stored as a new object; the previous object is
        removed once the record points at the new one.
        """
        evidence = self.get(evidence_id)

        if "category" in changes:
            self._check_category(changes["category"])
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValidationError("title is required", field="title")
        if "location" in changes:
            evidence.longitude, evidence.latitude = parse_location(changes["location"])

        for field in ("title", "category", "description"):
            if field in changes:
                setattr(evidence, field, changes[field])

        superseded_blob_id = None
        if content is not None:
            self._check_size(content)
            filename = filename or evidence.filename
            superseded_blob_id = evidence.blob_id
            evidence.blob_id = self.blob_store.put(
                content, filename, {"case_id": evidence.case_id, "category": evidence.category}
            )
            evidence.filename = filename
            evidence.mime_type = resolve_mime_type(filename, content_type)

        self.session.commit()

        if superseded_blob_id:
            self._discard_blob(superseded_blob_id)

        logger.info(f"Evidence updated: {evidence.id}")
        return evidence

    def delete(self, evidence_id: str) -> None:
        evidence = self.get(evidence_id)
        blob_id = evidence.blob_id
        self.session.delete(evidence)
        self.session.commit()
        self._discard_blob(blob_id)
        logger.info(f"Evidence deleted: {evidence_id}")

    def _discard_blob(self, blob_id: str) -> None:
        try:
            self.blob_store.delete(blob_id)
        except (BlobNotFoundError, StorageError) as e:
            logger.warning(f"Evidence file could not be removed: {blob_id} - {str(e)}")
