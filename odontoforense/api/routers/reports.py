"""
Case report API router

Rendered PDFs are streamed from /file/{blob_id}; /{report_id} returns the
record as JSON, so the two never compete for the same path.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from odontoforense.api.auth import get_current_user
from odontoforense.api.dependencies import get_blob_store, get_pipeline
from odontoforense.api.streaming import stream_blob
from odontoforense.db.connection import get_db
from odontoforense.db.models import User
from odontoforense.services.blob_store import BlobStore
from odontoforense.services.directories import ReportDirectory
from odontoforense.services.report_pipeline import ReportPipeline
from odontoforense.utils.exceptions import NotFoundError
from odontoforense.utils.response import success_response

router = APIRouter(prefix="/api/reports", tags=["reports"])

PDF_MEDIA_TYPE = "application/pdf"


class ReportCreateRequest(BaseModel):
    case_id: str
    examiner_id: str
    title: Optional[str] = None


class SignRequest(BaseModel):
    signature: str


@router.post("", status_code=status.HTTP_201_CREATED)
def create_report(
    request: ReportCreateRequest,
    pipeline: ReportPipeline = Depends(get_pipeline),
    user: User = Depends(get_current_user),
):
    """Generate, render and store a case report"""
    report = pipeline.generate_report(
        case_id=request.case_id,
        examiner_id=request.examiner_id,
        actor_id=user.id,
        title=request.title,
    )
    return success_response(report=report.to_json())


@router.get("")
def list_reports(
    case_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    directory = ReportDirectory(db)
    reports = directory.find_by_parent(case_id) if case_id else directory.find_all()
    return success_response(reports=[report.to_json() for report in reports])


@router.get("/file/{blob_id}")
def download_report(
    blob_id: str,
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    _: User = Depends(get_current_user),
):
    """Stream the report PDF inline"""
    report = ReportDirectory(db).find_by_blob_id(blob_id)
    if report is None:
        raise NotFoundError("Report", blob_id)
    return stream_blob(blob_store, blob_id, PDF_MEDIA_TYPE, report.filename)


@router.get("/{report_id}")
def get_report(report_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    report = ReportDirectory(db).find_by_id(report_id)
    if report is None:
        raise NotFoundError("Report", report_id)
    return success_response(report=report.to_json())


@router.post("/{report_id}/sign")
def sign_report(
    report_id: str,
    request: SignRequest,
    pipeline: ReportPipeline = Depends(get_pipeline),
    user: User = Depends(get_current_user),
):
    """Sign a report; a new PDF is rendered and stored"""
    report = pipeline.sign_report(report_id, request.signature, actor_id=user.id)
    return success_response(report=report.to_json())
