"""
ReportPipeline integration tests (in-memory database, mocked generator)
"""
import re
from contextlib import contextmanager

import pytest
from sqlalchemy.exc import OperationalError

from odontoforense.db.models import AuditEntry, BlobFile, Report
from odontoforense.services.report_pipeline import ReportPipeline
from odontoforense.utils.exceptions import NotFoundError, StorageError, ValidationError


def test_generate_report_for_case_without_related_items(pipeline, case_id, users, blob_store, fake_gemini):
    report = pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])

    assert report.id
    assert report.case_id == case_id
    assert report.title == "Case Report - Case 001"
    assert report.content == fake_gemini.default_text
    assert report.signed is False
    assert report.signature is None
    assert re.fullmatch(rf"report-{case_id}-\d{{13}}\.pdf", report.filename)
    assert blob_store.read(report.blob_id).startswith(b"%PDF")
    assert blob_store.get_info(report.blob_id).file_metadata == {"case_id": case_id}


def test_prompt_includes_case_evidence_and_victims(pipeline, case_id, users, png_evidence_id, add_victim, fake_gemini):
    add_victim(case_id, odontogram={"upper_left": ["18 missing"]})

    pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])

    prompt = fake_gemini.last_body()["contents"][0]["parts"][0]["text"]
    assert "Name: Case 001" in prompt
    assert "Panoramic radiograph" in prompt
    assert "collected by: Sam Assistant" in prompt
    assert "NIC 12345678" in prompt
    assert "Upper left: 18 missing" in prompt


def test_generation_failure_falls_back(pipeline, case_id, users, fake_gemini, sleeps, db_manager):
    fake_gemini.fail_with(429, times=3)

    report = pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"], title="Fallback report")

    assert sleeps == [1.0, 2.0]
    assert report.content.startswith("The expert report could not be generated automatically")
    assert "Name: Case 001" in report.content
    assert "Location: Recife" in report.content
    assert "Responsible Examiner: Dr. Eva Examiner" in report.content

    with db_manager.get_db_session() as session:
        stored = session.get(Report, report.id)
        assert stored.content == report.content
        assert stored.title == "Fallback report"


def test_generate_records_audit_entry(pipeline, case_id, users, audit_log):
    report = pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])

    entries = audit_log.list(entity_id=report.id)

    assert len(entries) == 1
    assert entries[0].action == "Report Created"
    assert entries[0].entity_type == "Report"
    assert entries[0].user_id == users["assistant"]
    assert entries[0].detail == f'Report "Case Report - Case 001" created for case {case_id}'


def test_unknown_examiner(pipeline, case_id, users):
    with pytest.raises(ValidationError) as exc_info:
        pipeline.generate_report(case_id, "nobody", actor_id=users["admin"])
    assert exc_info.value.message == "examiner not found"
    assert exc_info.value.field == "examiner_id"


def test_examiner_must_have_examiner_role(pipeline, case_id, users):
    with pytest.raises(ValidationError) as exc_info:
        pipeline.generate_report(case_id, users["assistant"], actor_id=users["admin"])
    assert exc_info.value.message == "not an examiner"


def test_unknown_case(pipeline, users, fake_gemini, db_manager):
    with pytest.raises(NotFoundError):
        pipeline.generate_report("missing", users["examiner"], actor_id=users["admin"])

    assert fake_gemini.requests == []
    with db_manager.get_db_session() as session:
        assert session.query(BlobFile).count() == 0


def test_sign_twice_keeps_last_signature_and_every_blob(pipeline, case_id, users, blob_store, audit_log):
    report = pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])

    first = pipeline.sign_report(report.id, "Dr. Eva Examiner", actor_id=users["examiner"])
    first_blob_id = first.blob_id
    second = pipeline.sign_report(report.id, "Eva Examiner, DDS", actor_id=users["examiner"])

    assert second.signature == "Eva Examiner, DDS"
    assert second.signed is True
    assert len({report.blob_id, first_blob_id, second.blob_id}) == 3
    assert re.fullmatch(rf"report-{case_id}-signed-\d{{13}}\.pdf", second.filename)

    for blob_id in (report.blob_id, first_blob_id, second.blob_id):
        assert blob_store.read(blob_id).startswith(b"%PDF")

    actions = [entry.action for entry in audit_log.list(entity_id=report.id)]
    assert actions == ["Report Created", "Report Signed", "Report Signed"]


def test_sign_regenerates_content(pipeline, case_id, users, fake_gemini):
    report = pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])
    fake_gemini.respond_with(fake_gemini.success("Regenerated narrative."))

    signed = pipeline.sign_report(report.id, "Dr. Eva Examiner", actor_id=users["examiner"])

    assert signed.content == "Regenerated narrative."
    assert len(fake_gemini.requests) == 2


def test_sign_falls_back_when_generation_fails(pipeline, case_id, users, fake_gemini):
    report = pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])
    fake_gemini.fail_with(503, times=3)

    signed = pipeline.sign_report(report.id, "Dr. Eva Examiner", actor_id=users["examiner"])

    assert signed.signed is True
    assert signed.content.startswith("The expert report could not be generated automatically")


def test_sign_can_reuse_stored_content(db_manager, blob_store, content_generator, case_id, users, fake_gemini):
    pipeline = ReportPipeline(
        db_manager, blob_store, content_generator,
        sign_regenerates_content=False,
    )
    report = pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])

    signed = pipeline.sign_report(report.id, "Dr. Eva Examiner", actor_id=users["examiner"])

    assert signed.content == report.content
    assert len(fake_gemini.requests) == 1


def test_sign_can_discard_superseded_blob(db_manager, blob_store, content_generator, case_id, users):
    pipeline = ReportPipeline(
        db_manager, blob_store, content_generator,
        retain_superseded_blobs=False,
    )
    report = pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])

    signed = pipeline.sign_report(report.id, "Dr. Eva Examiner", actor_id=users["examiner"])

    assert blob_store.exists(report.blob_id) is False
    assert blob_store.exists(signed.blob_id) is True


def test_sign_unknown_report(pipeline, users):
    with pytest.raises(NotFoundError):
        pipeline.sign_report("missing", "Dr. Eva Examiner", actor_id=users["examiner"])


def test_sign_requires_signature(pipeline, case_id, users):
    report = pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])
    with pytest.raises(ValidationError):
        pipeline.sign_report(report.id, "   ", actor_id=users["examiner"])


def test_generate_laudo_for_image_evidence(pipeline, png_evidence_id, users, blob_store, fake_gemini, audit_log):
    laudo = pipeline.generate_laudo(png_evidence_id, "Radiograph laudo", users["examiner"], actor_id=users["examiner"])

    assert laudo.evidence_id == png_evidence_id
    assert laudo.title == "Radiograph laudo"
    assert re.fullmatch(rf"laudo-{png_evidence_id}-\d{{13}}\.pdf", laudo.filename)
    pdf = blob_store.read(laudo.blob_id)
    assert b"/Subtype /Image" in pdf
    assert blob_store.get_info(laudo.blob_id).file_metadata == {"evidence_id": png_evidence_id}

    prompt = fake_gemini.last_body()["contents"][0]["parts"][0]["text"]
    assert f"Evidence ID: {png_evidence_id}" in prompt
    assert "Location: [-34.87, -8.05]" in prompt

    assert [entry.action for entry in audit_log.list(entity_type="Laudo")] == ["Laudo Created"]


def test_generate_laudo_for_pdf_evidence(pipeline, pdf_evidence_id, users, blob_store):
    laudo = pipeline.generate_laudo(pdf_evidence_id, "Chart laudo", users["examiner"], actor_id=users["examiner"])

    assert blob_store.read(laudo.blob_id).startswith(b"%PDF")


def test_laudo_requires_title(pipeline, png_evidence_id, users):
    with pytest.raises(ValidationError) as exc_info:
        pipeline.generate_laudo(png_evidence_id, "", users["examiner"], actor_id=users["examiner"])
    assert exc_info.value.field == "title"


def test_laudo_unknown_evidence(pipeline, users):
    with pytest.raises(NotFoundError):
        pipeline.generate_laudo("missing", "Title", users["examiner"], actor_id=users["examiner"])


def test_sign_laudo(pipeline, png_evidence_id, users, audit_log):
    laudo = pipeline.generate_laudo(png_evidence_id, "Radiograph laudo", users["examiner"], actor_id=users["examiner"])

    signed = pipeline.sign_laudo(laudo.id, "Dr. Eva Examiner", actor_id=users["examiner"])

    assert signed.signed is True
    assert signed.signature == "Dr. Eva Examiner"
    entry = audit_log.list(entity_id=laudo.id)[-1]
    assert entry.action == "Laudo Signed"
    assert entry.detail == f'Laudo "Radiograph laudo" signed for evidence {png_evidence_id}'


class FailingBlobStore:
    """Blob store whose uploads always fail"""

    def __init__(self, inner):
        self.inner = inner

    def put(self, content, filename, metadata=None):
        raise StorageError("disk full")

    def read(self, blob_id):
        return self.inner.read(blob_id)


def test_upload_failure_surfaces_and_persists_nothing(db_manager, blob_store, content_generator, case_id, users):
    pipeline = ReportPipeline(db_manager, FailingBlobStore(blob_store), content_generator)

    with pytest.raises(StorageError):
        pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])

    with db_manager.get_db_session() as session:
        assert session.query(Report).count() == 0


class FailingWriteDatabaseManager:
    """Database manager whose session scopes fail from the given call on"""

    def __init__(self, inner, fail_from_call):
        self.inner = inner
        self.fail_from_call = fail_from_call
        self.calls = 0

    @contextmanager
    def get_db_session(self):
        self.calls += 1
        with self.inner.get_db_session() as session:
            yield session
            if self.calls >= self.fail_from_call:
                raise OperationalError("INSERT INTO reports", {}, Exception("database is locked"))


def test_persistence_failure_after_upload_orphans_blob(db_manager, blob_store, content_generator, audit_log, case_id, users):
    # first scope resolves examiner and case, the second saves the record
    failing_db = FailingWriteDatabaseManager(db_manager, fail_from_call=2)
    pipeline = ReportPipeline(failing_db, blob_store, content_generator, audit_log=audit_log)

    with pytest.raises(StorageError):
        pipeline.generate_report(case_id, users["examiner"], actor_id=users["assistant"])

    with db_manager.get_db_session() as session:
        assert session.query(Report).count() == 0
        assert session.query(AuditEntry).count() == 0
        blobs = session.query(BlobFile).all()
        assert len(blobs) == 1
        assert blobs[0].filename.startswith(f"report-{case_id}-")
