"""
Evidence laudo API router

Rendered PDFs are streamed from /file/{blob_id}; /{laudo_id} returns the
record as JSON, so the two never compete for the same path.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from odontoforense.api.auth import get_current_user
from odontoforense.api.dependencies import get_blob_store, get_pipeline
from odontoforense.api.routers.reports import PDF_MEDIA_TYPE, SignRequest
from odontoforense.api.streaming import stream_blob
from odontoforense.db.connection import get_db
from odontoforense.db.models import User
from odontoforense.services.blob_store import BlobStore
from odontoforense.services.directories import LaudoDirectory
from odontoforense.services.report_pipeline import ReportPipeline
from odontoforense.utils.exceptions import NotFoundError
from odontoforense.utils.response import success_response

router = APIRouter(prefix="/api/laudos", tags=["laudos"])


class LaudoCreateRequest(BaseModel):
    evidence_id: str
    title: str
    examiner_id: str


@router.post("", status_code=status.HTTP_201_CREATED)
def create_laudo(
    request: LaudoCreateRequest,
    pipeline: ReportPipeline = Depends(get_pipeline),
    user: User = Depends(get_current_user),
):
    """Generate, render and store an evidence laudo"""
    laudo = pipeline.generate_laudo(
        evidence_id=request.evidence_id,
        title=request.title,
        examiner_id=request.examiner_id,
        actor_id=user.id,
    )
    return success_response(laudo=laudo.to_json())


@router.get("")
def list_laudos(
    evidence_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    directory = LaudoDirectory(db)
    laudos = directory.find_by_parent(evidence_id) if evidence_id else directory.find_all()
    return success_response(laudos=[laudo.to_json() for laudo in laudos])


@router.get("/file/{blob_id}")
def download_laudo(
    blob_id: str,
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    _: User = Depends(get_current_user),
):
    laudo = LaudoDirectory(db).find_by_blob_id(blob_id)
    if laudo is None:
        raise NotFoundError("Laudo", blob_id)
    return stream_blob(blob_store, blob_id, PDF_MEDIA_TYPE, laudo.filename)


@router.get("/{laudo_id}")
def get_laudo(laudo_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    laudo = LaudoDirectory(db).find_by_id(laudo_id)
    if laudo is None:
        raise NotFoundError("Laudo", laudo_id)
    return success_response(laudo=laudo.to_json())


@router.post("/{laudo_id}/sign")
def sign_laudo(
    laudo_id: str,
    request: SignRequest,
    pipeline: ReportPipeline = Depends(get_pipeline),
    user: User = Depends(get_current_user),
):
    laudo = pipeline.sign_laudo(laudo_id, request.signature, actor_id=user.id)
    return success_response(laudo=laudo.to_json())
