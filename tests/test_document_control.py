import pytest

from app.cdms import create_app
from app.cdms.models import Base
from app.cdms.seed import seed_defaults
from app.cdms.state import current_state

BASE = "/api/documents"


@pytest.fixture()
def app(tmp_path, monkeypatch, ids):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STATE_BACKEND", "sql")
    monkeypatch.delenv("QUALITY_UNIT_ACTOR", raising=False)

    app = create_app(ids=ids)
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _setup_catalog(client):
    r = client.post("/api/document-types/", json={"name": "SOP", "description": "Standard Operating Procedure"})
    assert r.status_code == 201
    type_id = r.json["id"]

    r = client.post(
        "/api/workflows/",
        json={
            "name": "GMP Review",
            "description": "Author review then QA approval.",
            "isDefault": True,
            "steps": [
                {"name": "Author Review", "responsibleRole": "Document Owner", "instructions": "Check the content."},
                {"name": "QA Approval", "responsibleRole": "Quality Assurance", "instructions": "Approve for GMP use."},
            ],
        },
    )
    assert r.status_code == 201
    return type_id, r.json


def _create_doc(client, type_id, workflow_id, number="SOP-100"):
    return client.post(
        f"{BASE}/",
        json={
            "title": "Line Clearance",
            "documentNumber": number,
            "createdBy": "Jane Author",
            "issuedBy": "Jane Author",
            "issuerRole": "Production Lead",
            "category": "Production",
            "securityLevel": "restricted",
            "typeId": type_id,
            "workflowId": workflow_id,
            "dateOfIssue": "2026-01-12",
            "nextIssueDate": "2026-02-01",
            "version": {"versionLabel": "1.0", "changeSummary": "Initial release"},
        },
    )


def _sign(client, doc_id, step_id, name="Alex Reviewer"):
    return client.post(
        f"{BASE}/{doc_id}/signatures",
        json={
            "stepId": step_id,
            "signerName": name,
            "signerTitle": "QA Lead",
            "signerIdentifier": "EMP-042",
            "reason": "Reviewed",
            "password": "s3cret",
        },
    )


def test_document_lifecycle_end_to_end(client, app):
    type_id, wf = _setup_catalog(client)
    step_a, step_b = (st["id"] for st in wf["steps"])

    r = _create_doc(client, type_id, wf["id"])
    assert r.status_code == 201
    doc = r.json
    doc_id = doc["id"]
    assert doc["lifecycleState"] == "Draft"
    assert doc["auditTrail"] == []
    assert doc["workflowProgress"]["nextStepId"] == step_a
    assert doc["suggestedNextVersionLabel"] == "1.1"

    r = client.post(f"{BASE}/{doc_id}/submit")
    assert r.status_code == 200
    assert r.json["lifecycleState"] == "Under Review"

    # second step first: allowed, next step stays advisory
    r = _sign(client, doc_id, step_b, name="Sam QA")
    assert r.status_code == 200
    assert r.json["lifecycleState"] == "Under Review"
    approval = r.json["versions"][-1]["approvals"][0]
    assert approval["credentialToken"] and approval["credentialToken"] != "s3cret"

    r = _sign(client, doc_id, step_a)
    assert r.json["lifecycleState"] == "Approved"

    r = client.post(f"{BASE}/{doc_id}/release")
    assert r.status_code == 200
    assert r.json["lifecycleState"] == "Effective"
    # newest first for review
    assert r.json["auditTrail"][0]["actor"] == "Quality Unit"
    assert r.json["auditTrail"][-1]["details"] == "Document progressed to Under Review"

    r = client.post(
        f"{BASE}/{doc_id}/versions",
        json={"versionLabel": "1.1", "changeSummary": "Added safety section", "effectiveFrom": "2026-03-01", "nextReviewOn": "2026-09-01"},
    )
    assert r.status_code == 201
    assert r.json["lifecycleState"] == "Draft"
    assert [v["status"] for v in r.json["versions"]] == ["Effective", "Draft"]
    assert r.json["currentVersionLabel"] == "1.1"
    assert len(r.json["auditTrail"]) == 5

    # persisted: a fresh app over the same database sees the same document
    fresh = create_app()
    with fresh.app_context():
        stored = current_state(fresh).get_document(doc_id)
    assert stored.lifecycle_state == "Draft"
    assert len(stored.versions) == 2


def test_invalid_transitions_map_to_error_responses(client):
    type_id, wf = _setup_catalog(client)
    doc_id = _create_doc(client, type_id, wf["id"]).json["id"]

    r = client.post(f"{BASE}/{doc_id}/release")
    assert r.status_code == 409
    assert r.json["error"] == "InvalidTransitionError"

    assert client.post(f"{BASE}/{doc_id}/submit").status_code == 200
    assert client.post(f"{BASE}/{doc_id}/submit").status_code == 409

    r = _sign(client, doc_id, "not-a-step")
    assert r.status_code == 404
    assert r.json["error"] == "UnknownStepError"

    step_a = wf["steps"][0]["id"]
    assert _sign(client, doc_id, step_a).status_code == 200
    r = _sign(client, doc_id, step_a)
    assert r.status_code == 409
    assert len(client.get(f"{BASE}/{doc_id}").json["versions"][-1]["approvals"]) == 1

    r = client.post(f"{BASE}/{doc_id}/signatures", json={"stepId": wf["steps"][1]["id"], "signerName": "X"})
    assert r.status_code == 400
    assert r.json["error"] == "ValidationError"

    assert client.get(f"{BASE}/missing").status_code == 404


def test_document_without_workflow_cannot_be_submitted(client):
    type_id, _ = _setup_catalog(client)
    doc_id = _create_doc(client, type_id, "").json["id"]

    r = client.post(f"{BASE}/{doc_id}/submit")
    assert r.status_code == 409
    assert client.get(f"{BASE}/{doc_id}").json["lifecycleState"] == "Draft"


def test_create_document_validation(client):
    type_id, wf = _setup_catalog(client)
    assert _create_doc(client, type_id, wf["id"]).status_code == 201

    r = _create_doc(client, type_id, wf["id"])
    assert r.status_code == 400
    assert "Document number already exists." in r.json["errors"]

    r = _create_doc(client, type_id, "unknown-workflow", number="SOP-200")
    assert r.status_code == 400

    r = client.post(f"{BASE}/", json={"title": "x"})
    assert r.status_code == 400

    r = client.post(f"{BASE}/", data="not json", content_type="text/plain")
    assert r.status_code == 400


def test_workflow_catalog_endpoints(client):
    r = client.get("/api/workflows/default")
    assert r.status_code == 404

    _, wf = _setup_catalog(client)
    assert client.get("/api/workflows/default").json["id"] == wf["id"]
    assert client.get(f"/api/workflows/{wf['id']}").json["name"] == "GMP Review"
    assert len(client.get("/api/workflows/").json["workflows"]) == 1
    assert len(client.get("/api/document-types/").json["documentTypes"]) == 1

    r = client.post("/api/workflows/", json={"name": "Ba", "description": "too short", "steps": []})
    assert r.status_code == 400
    assert len(r.json["errors"]) == 3


def test_list_and_dashboard(client):
    type_id, wf = _setup_catalog(client)
    doc_id = _create_doc(client, type_id, wf["id"]).json["id"]
    _create_doc(client, type_id, "", number="SOP-101")
    client.post(f"{BASE}/{doc_id}/submit")

    docs = client.get(f"{BASE}/").json["documents"]
    assert [d["documentNumber"] for d in docs] == ["SOP-100", "SOP-101"]
    under_review = client.get(f"{BASE}/", query_string={"state": "Under Review"}).json["documents"]
    assert [d["id"] for d in under_review] == [doc_id]

    summary = client.get("/api/dashboard").json
    assert summary["totalDocuments"] == 2
    assert summary["effective"] == 0
    assert summary["restricted"] == 2
    assert summary["upcomingReviews"] == 2
    assert len(summary["recent"]) == 2


def test_seed_defaults_is_idempotent(app):
    st = current_state(app)
    assert seed_defaults(st) is True
    assert seed_defaults(st) is False
    assert st.default_workflow().name == "Standard GMP Review"
    assert len(st.document_types) == 4


def test_malformed_payloads_are_client_errors(client):
    type_id, wf = _setup_catalog(client)
    doc_id = _create_doc(client, type_id, wf["id"]).json["id"]
    client.post(f"{BASE}/{doc_id}/submit")

    r = client.post(f"{BASE}/{doc_id}/signatures", json={"stepId": 5})
    assert r.status_code == 404
    assert r.json["error"] == "UnknownStepError"

    r = client.post(f"{BASE}/{doc_id}/signatures", json={"stepId": None})
    assert r.status_code == 400

    r = client.post(
        "/api/workflows/",
        json={"name": "Review flow", "description": "A description here.", "steps": ["x"]},
    )
    assert r.status_code == 400
    assert r.json["errors"] == ["Step 1: must be an object."]


def test_list_filters_by_type_and_search_text(client):
    type_id, wf = _setup_catalog(client)
    other_type = client.post("/api/document-types/", json={"name": "Policy", "description": "Quality policy"}).json["id"]
    _create_doc(client, type_id, wf["id"])
    _create_doc(client, other_type, wf["id"], number="POL-001")

    by_type = client.get(f"{BASE}/", query_string={"typeId": other_type}).json["documents"]
    assert [d["documentNumber"] for d in by_type] == ["POL-001"]

    by_number = client.get(f"{BASE}/", query_string={"q": "sop-1"}).json["documents"]
    assert [d["documentNumber"] for d in by_number] == ["SOP-100"]

    by_type_name = client.get(f"{BASE}/", query_string={"q": "policy"}).json["documents"]
    assert [d["documentNumber"] for d in by_type_name] == ["POL-001"]

    assert client.get(f"{BASE}/", query_string={"q": "nothing like this"}).json["documents"] == []
