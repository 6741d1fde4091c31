from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from werkzeug.security import generate_password_hash

from app.cdms.audit import review_order
from app.cdms.errors import ValidationError
from app.cdms.modules.document_control.models import DocumentRecord
from app.cdms.modules.document_control.service import workflow_progress
from app.cdms.modules.document_control.versions import latest_version, suggest_next_version_label
from app.cdms.state import current_state
from app.cdms.utils import clean

bp = Blueprint("doc_control", __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError(["Request body must be a JSON object."])
    return data


def _document_summary(d: DocumentRecord) -> dict:
    return {
        "id": d.id,
        "title": d.title,
        "documentNumber": d.document_number,
        "currentVersionLabel": d.current_version_label,
        "lifecycleState": d.lifecycle_state,
        "securityLevel": d.security_level,
        "category": d.category,
        "typeId": d.type_id,
        "workflowId": d.workflow_id,
        "nextIssueDate": d.next_issue_date.isoformat() if d.next_issue_date else None,
    }


def _document_detail(d: DocumentRecord) -> dict:
    st = current_state()
    out = d.to_dict()
    out["auditTrail"] = [e.to_dict() for e in review_order(d.audit_trail)]
    out["workflowProgress"] = workflow_progress(d, st.workflow_for(d))
    out["latestVersionId"] = latest_version(d).id
    out["suggestedNextVersionLabel"] = suggest_next_version_label(d.current_version_label)
    return out


@bp.get("/")
def list_documents():
    st = current_state()
    docs = sorted(st.documents, key=lambda d: d.document_number)
    state_filter = clean(request.args.get("state"))
    type_filter = clean(request.args.get("typeId"))
    q = clean(request.args.get("q")).lower()
    if state_filter:
        docs = [d for d in docs if d.lifecycle_state == state_filter]
    if type_filter:
        docs = [d for d in docs if d.type_id == type_filter]
    if q:
        type_names = {t.id: t.name for t in st.document_types}
        docs = [
            d
            for d in docs
            if q in " ".join([d.title, d.document_number, type_names.get(d.type_id, ""), d.category]).lower()
        ]
    return jsonify({"documents": [_document_summary(d) for d in docs]})


@bp.post("/")
def create_document():
    data = _json_body()
    version = data.get("version") or {}
    if not isinstance(version, dict):
        raise ValidationError(["version must be an object."])
    d = current_state().create_document(data, version)
    return jsonify(_document_detail(d)), 201


@bp.get("/<doc_id>")
def document_detail(doc_id: str):
    return jsonify(_document_detail(current_state().get_document(doc_id)))


@bp.post("/<doc_id>/submit")
def submit_for_review(doc_id: str):
    d = current_state().submit_for_review(doc_id)
    return jsonify(_document_detail(d))


@bp.post("/<doc_id>/signatures")
def apply_signature(doc_id: str):
    data = _json_body()
    step_id = clean(data.get("stepId"))
    if not step_id:
        raise ValidationError(["stepId is required."])
    payload = dict(data)
    # A raw password is turned into an opaque token here; it is never stored or checked.
    password = payload.pop("password", None)
    if password and not payload.get("credentialToken"):
        payload["credentialToken"] = generate_password_hash(str(password))
    d = current_state().apply_signature(doc_id, step_id, payload)
    current_app.logger.info("Signature applied doc_id=%s step_id=%s state=%s", doc_id, step_id, d.lifecycle_state)
    return jsonify(_document_detail(d))


@bp.post("/<doc_id>/release")
def release_effective(doc_id: str):
    d = current_state().release_effective(doc_id)
    return jsonify(_document_detail(d))


@bp.post("/<doc_id>/versions")
def draft_new_version(doc_id: str):
    data = _json_body()
    d = current_state().draft_new_version(
        doc_id,
        data.get("versionLabel") or "",
        data.get("changeSummary") or "",
        data.get("effectiveFrom"),
        data.get("nextReviewOn"),
    )
    return jsonify(_document_detail(d)), 201
