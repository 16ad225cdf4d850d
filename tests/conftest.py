"""
Pytest configuration and fixtures
"""
import io
import json
from typing import Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from odontoforense.api.main import create_app
from odontoforense.db.connection import DatabaseManager
from odontoforense.db.models import Victim
from odontoforense.services.audit_log import AuditLog
from odontoforense.services.blob_store import BlobStore
from odontoforense.services.case_service import CaseService
from odontoforense.services.content_generator import ContentGenerator
from odontoforense.services.document_renderer import DocumentRenderer
from odontoforense.services.evidence_service import EvidenceService
from odontoforense.services.report_pipeline import ReportPipeline
from odontoforense.services.user_service import UserService, create_access_token
from odontoforense.utils.constants import CaseCategory, EvidenceCategory, UserRole

GENERATED_TEXT = "Generated forensic narrative."

ADMIN_CPF = "52998224725"
EXAMINER_CPF = "11144477735"
ASSISTANT_CPF = "12345678909"

PASSWORD = "s3cret-pass"


class FakeGemini:
    """Scripted generateContent endpoint for httpx.MockTransport"""

    default_text = GENERATED_TEXT

    def __init__(self):
        self.queue: List[httpx.Response] = []
        self.requests: List[httpx.Request] = []

    def respond_with(self, *responses: httpx.Response) -> None:
        self.queue.extend(responses)

    def fail_with(self, status_code: int, times: int = 1) -> None:
        for _ in range(times):
            self.queue.append(httpx.Response(status_code, json={"error": {"code": status_code}}))

    @staticmethod
    def success(text: str = GENERATED_TEXT) -> httpx.Response:
        return httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": text}]}}]
        })

    def last_body(self) -> Dict:
        return json.loads(self.requests[-1].content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.queue:
            return self.queue.pop(0)
        return self.success()


def make_png(width: int = 40, height: int = 20) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "red").save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def db_manager():
    """In-memory database with the schema created"""
    manager = DatabaseManager("sqlite://")
    manager.create_all()
    yield manager
    manager.close()


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def sleeps():
    """Delays requested by the retry loop (nothing actually sleeps)"""
    return []


@pytest.fixture
def content_generator(fake_gemini, sleeps):
    generator = ContentGenerator(
        api_key="test-key",
        model="test-model",
        api_base="https://gemini.test/v1beta",
        max_attempts=3,
        initial_delay=1.0,
        backoff_factor=2.0,
        http_client=httpx.Client(transport=httpx.MockTransport(fake_gemini)),
        sleep=sleeps.append,
    )
    yield generator
    generator.close()


@pytest.fixture
def blob_store(db_manager):
    # Small chunks so documents span several of them
    return BlobStore(db_manager, chunk_size=1024)


@pytest.fixture
def renderer(blob_store):
    return DocumentRenderer(blob_store)


@pytest.fixture
def audit_log(db_manager):
    return AuditLog(db_manager)


@pytest.fixture
def pipeline(db_manager, blob_store, content_generator, renderer, audit_log):
    return ReportPipeline(
        db_manager=db_manager,
        blob_store=blob_store,
        content_generator=content_generator,
        renderer=renderer,
        audit_log=audit_log,
    )


@pytest.fixture
def session(db_manager):
    session = db_manager.get_session()
    yield session
    session.close()


@pytest.fixture
def users(db_manager) -> Dict[str, str]:
    """Seeded admin, examiner and assistant; maps role to user id"""
    session = db_manager.get_session()
    try:
        service = UserService(session)
        admin = service.create_user(ADMIN_CPF, "admin@example.com", "Ada Admin", UserRole.ADMIN.value, PASSWORD)
        examiner = service.create_user(EXAMINER_CPF, "examiner@example.com", "Dr. Eva Examiner", UserRole.EXAMINER.value, PASSWORD)
        assistant = service.create_user(ASSISTANT_CPF, "assistant@example.com", "Sam Assistant", UserRole.ASSISTANT.value, PASSWORD)
        return {"admin": admin.id, "examiner": examiner.id, "assistant": assistant.id}
    finally:
        session.close()


@pytest.fixture
def case_id(db_manager, users) -> str:
    """A case with no evidence and no victims"""
    session = db_manager.get_session()
    try:
        case = CaseService(session).create(
            name="Case 001",
            location="Recife",
            description="Remains found near the harbour",
            category=CaseCategory.DENTAL_ARCH_IDENTIFICATION.value,
            examiner_id=users["examiner"],
        )
        return case.id
    finally:
        session.close()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def add_evidence(db_manager, blob_store, users):
    """Factory storing an evidence file under a case; returns the evidence id"""
    def factory(
        case_id: str,
        content: bytes,
        filename: str,
        content_type: str,
        title: str = "Panoramic radiograph",
        location: Optional[str] = None,
    ) -> str:
        session = db_manager.get_session()
        try:
            evidence = EvidenceService(session, blob_store).create(
                case_id=case_id,
                title=title,
                category=EvidenceCategory.RADIOGRAPH.value,
                content=content,
                filename=filename,
                content_type=content_type,
                collected_by=users["assistant"],
                description="Upper arch",
                location=location,
            )
            return evidence.id
        finally:
            session.close()

    return factory


@pytest.fixture
def add_victim(db_manager):
    """Factory inserting a victim under a case; returns the victim id"""
    def factory(case_id: str, nic: str = "12345678", **fields) -> str:
        session = db_manager.get_session()
        try:
            victim = Victim(case_id=case_id, nic=nic, anatomical_note="Adult skull", **fields)
            session.add(victim)
            session.commit()
            return victim.id
        finally:
            session.close()

    return factory


@pytest.fixture
def png_evidence_id(add_evidence, case_id, png_bytes) -> str:
    return add_evidence(
        case_id, content=png_bytes, filename="xray.png", content_type="image/png",
        location="[-34.87, -8.05]",
    )


@pytest.fixture
def pdf_evidence_id(add_evidence, case_id) -> str:
    return add_evidence(
        case_id, content=b"%PDF-1.4 scanned chart", filename="chart.pdf",
        content_type="application/pdf", title="Dental chart",
    )


@pytest.fixture
def app(db_manager, content_generator):
    return create_app(db_manager=db_manager, content_generator=content_generator)


@pytest.fixture
def client(app):
    """Test client; entering the context runs startup"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(db_manager, users) -> Dict[str, Dict[str, str]]:
    """Bearer headers per seeded role"""
    session = db_manager.get_session()
    try:
        service = UserService(session)
        return {
            role: {"Authorization": f"Bearer {create_access_token(service.get(user_id))}"}
            for role, user_id in users.items()
        }
    finally:
        session.close()
