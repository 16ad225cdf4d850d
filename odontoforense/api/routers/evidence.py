"""
Evidence API router
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from odontoforense.api.auth import get_current_user
from odontoforense.api.dependencies import get_blob_store
from odontoforense.api.streaming import stream_blob
from odontoforense.db.connection import get_db
from odontoforense.db.models import User
from odontoforense.services.blob_store import BlobStore
from odontoforense.services.evidence_service import EvidenceService
from odontoforense.utils.response import success_response

router = APIRouter(prefix="/api/evidence", tags=["evidence"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_evidence(
    file: UploadFile = File(...),
    case_id: str = Form(...),
    title: str = Form(...),
    category: str = Form(...),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    user: User = Depends(get_current_user),
):
    """Upload an evidence file with its metadata"""
    evidence = EvidenceService(db, blob_store).create(
        case_id=case_id,
        title=title,
        category=category,
        content=file.file.read(),
        filename=file.filename,
        content_type=file.content_type,
        collected_by=user.id,
        description=description,
        location=location,
    )
    return success_response(evidence=evidence.to_json())


@router.get("")
def list_evidence(
    case_id: Optional[str] = None,
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    _: User = Depends(get_current_user),
):
    items = EvidenceService(db, blob_store).list(case_id)
    return success_response(evidence=[item.to_json() for item in items])


@router.get("/file/{blob_id}")
def download_evidence_file(
    blob_id: str,
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    _: User = Depends(get_current_user),
):
    """Stream the stored file with its recorded MIME type"""
    evidence = EvidenceService(db, blob_store).get_by_blob_id(blob_id)
    return stream_blob(blob_store, blob_id, evidence.mime_type, evidence.filename)


@router.get("/{evidence_id}")
def get_evidence(
    evidence_id: str,
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    _: User = Depends(get_current_user),
):
    evidence = EvidenceService(db, blob_store).get(evidence_id)
    return success_response(evidence=evidence.to_json())


@router.put("/{evidence_id}")
def update_evidence(
    evidence_id: str,
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    _: User = Depends(get_current_user),
):
    """Update metadata; a new file replaces the stored one"""
    changes = {
        key: value
        for key, value in {
            "title": title,
            "category": category,
            "description": description,
            "location": location,
        }.items()
        if value is not None
    }
    evidence = EvidenceService(db, blob_store).update(
        evidence_id,
        changes,
        content=file.file.read() if file is not None else None,
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
    )
    return success_response(evidence=evidence.to_json())


@router.delete("/{evidence_id}")
def delete_evidence(
    evidence_id: str,
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    _: User = Depends(get_current_user),
):
    EvidenceService(db, blob_store).delete(evidence_id)
    return success_response(message="Evidence deleted")
