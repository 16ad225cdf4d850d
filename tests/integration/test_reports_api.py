"""
Report and laudo HTTP surface tests
"""


def create_report(client, headers, case_id, examiner_id, **extra):
    return client.post(
        "/api/reports",
        json={"case_id": case_id, "examiner_id": examiner_id, **extra},
        headers=headers,
    )


def test_create_report(client, auth_headers, case_id, users, fake_gemini):
    response = create_report(client, auth_headers["assistant"], case_id, users["examiner"])

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    report = body["report"]
    assert report["case_id"] == case_id
    assert report["title"] == "Case Report - Case 001"
    assert report["content"] == fake_gemini.default_text
    assert report["signed"] is False
    assert report["filename"].startswith(f"report-{case_id}-")


def test_create_report_survives_generation_failure(client, auth_headers, case_id, users, fake_gemini):
    fake_gemini.fail_with(429, times=3)

    response = create_report(client, auth_headers["assistant"], case_id, users["examiner"])

    assert response.status_code == 201
    assert response.json()["report"]["content"].startswith("The expert report could not be generated")


def test_create_report_unknown_examiner(client, auth_headers, case_id):
    response = create_report(client, auth_headers["assistant"], case_id, "nobody")

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "examiner not found",
        "details": {"field": "examiner_id"},
    }


def test_create_report_unknown_case(client, auth_headers, users):
    response = create_report(client, auth_headers["assistant"], "missing", users["examiner"])

    assert response.status_code == 404
    assert response.json()["success"] is False
    assert response.json()["error"] == "Case not found"


def test_create_report_requires_token(client, case_id, users):
    response = create_report(client, {}, case_id, users["examiner"])

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_missing_field_is_request_validation_error(client, auth_headers, case_id):
    response = client.post("/api/reports", json={"case_id": case_id}, headers=auth_headers["assistant"])

    assert response.status_code == 422
    assert response.json()["success"] is False
    assert response.json()["details"]["field"] == "examiner_id"


def test_get_and_list_reports(client, auth_headers, case_id, users):
    report_id = create_report(client, auth_headers["assistant"], case_id, users["examiner"]).json()["report"]["id"]

    response = client.get(f"/api/reports/{report_id}", headers=auth_headers["examiner"])
    assert response.status_code == 200
    assert response.json()["report"]["id"] == report_id

    response = client.get("/api/reports", params={"case_id": case_id}, headers=auth_headers["examiner"])
    assert [report["id"] for report in response.json()["reports"]] == [report_id]

    assert client.get("/api/reports/missing", headers=auth_headers["examiner"]).status_code == 404


def test_stream_report_pdf(client, auth_headers, case_id, users):
    report = create_report(client, auth_headers["assistant"], case_id, users["examiner"]).json()["report"]

    response = client.get(f"/api/reports/file/{report['blob_id']}", headers=auth_headers["examiner"])

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == f'inline; filename="{report["filename"]}"'
    assert response.content.startswith(b"%PDF")


def test_stream_unknown_blob(client, auth_headers):
    response = client.get("/api/reports/file/unknown", headers=auth_headers["examiner"])

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_sign_report_twice(client, auth_headers, case_id, users, app):
    report = create_report(client, auth_headers["assistant"], case_id, users["examiner"]).json()["report"]

    first = client.post(
        f"/api/reports/{report['id']}/sign",
        json={"signature": "Dr. Eva Examiner"},
        headers=auth_headers["examiner"],
    ).json()["report"]
    second_response = client.post(
        f"/api/reports/{report['id']}/sign",
        json={"signature": "Eva Examiner, DDS"},
        headers=auth_headers["examiner"],
    )

    assert second_response.status_code == 200
    second = second_response.json()["report"]
    assert second["signature"] == "Eva Examiner, DDS"
    assert second["signed"] is True
    assert first["blob_id"] != second["blob_id"]
    assert app.state.blob_store.read(first["blob_id"]).startswith(b"%PDF")

    streamed = client.get(f"/api/reports/file/{second['blob_id']}", headers=auth_headers["examiner"])
    assert streamed.status_code == 200


def test_sign_unknown_report(client, auth_headers):
    response = client.post(
        "/api/reports/missing/sign",
        json={"signature": "Dr. Eva Examiner"},
        headers=auth_headers["examiner"],
    )
    assert response.status_code == 404


def test_create_and_sign_laudo(client, auth_headers, png_evidence_id, users):
    response = client.post(
        "/api/laudos",
        json={"evidence_id": png_evidence_id, "title": "Radiograph laudo", "examiner_id": users["examiner"]},
        headers=auth_headers["examiner"],
    )

    assert response.status_code == 201
    laudo = response.json()["laudo"]
    assert laudo["evidence_id"] == png_evidence_id

    pdf = client.get(f"/api/laudos/file/{laudo['blob_id']}", headers=auth_headers["examiner"])
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    signed = client.post(
        f"/api/laudos/{laudo['id']}/sign",
        json={"signature": "Dr. Eva Examiner"},
        headers=auth_headers["examiner"],
    )
    assert signed.status_code == 200
    assert signed.json()["laudo"]["signed"] is True

    listed = client.get("/api/laudos", params={"evidence_id": png_evidence_id}, headers=auth_headers["admin"])
    assert [item["id"] for item in listed.json()["laudos"]] == [laudo["id"]]


def test_laudo_requires_title(client, auth_headers, png_evidence_id, users):
    response = client.post(
        "/api/laudos",
        json={"evidence_id": png_evidence_id, "examiner_id": users["examiner"]},
        headers=auth_headers["examiner"],
    )
    assert response.status_code == 422


def test_laudo_unknown_evidence(client, auth_headers, users):
    response = client.post(
        "/api/laudos",
        json={"evidence_id": "missing", "title": "Laudo", "examiner_id": users["examiner"]},
        headers=auth_headers["examiner"],
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Evidence not found"


def test_audit_trail_is_admin_only(client, auth_headers, case_id, users):
    report = create_report(client, auth_headers["assistant"], case_id, users["examiner"]).json()["report"]

    assert client.get("/api/audit", headers=auth_headers["examiner"]).status_code == 403

    response = client.get("/api/audit", params={"entity_id": report["id"]}, headers=auth_headers["admin"])
    assert response.status_code == 200
    entries = response.json()["entries"]
    assert [entry["action"] for entry in entries] == ["Report Created"]
    assert entries[0]["user_id"] == users["assistant"]
