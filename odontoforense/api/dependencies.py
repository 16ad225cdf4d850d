"""
Application-scoped services, built at startup and held on app.state
"""
from fastapi import Request

from odontoforense.services.audit_log import AuditLog
from odontoforense.services.blob_store import BlobStore
from odontoforense.services.report_pipeline import ReportPipeline


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_pipeline(request: Request) -> ReportPipeline:
    return request.app.state.pipeline


def get_audit_log(request: Request) -> AuditLog:
    return request.app.state.audit_log
