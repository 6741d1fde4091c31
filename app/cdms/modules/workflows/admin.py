from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.cdms.errors import NotFoundError, ValidationError
from app.cdms.state import current_state

bp = Blueprint("workflows", __name__)
types_bp = Blueprint("document_types", __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError(["Request body must be a JSON object."])
    return data


@bp.get("/")
def list_workflows():
    return jsonify({"workflows": [wf.to_dict() for wf in current_state().workflows]})


@bp.post("/")
def create_workflow():
    data = _json_body()
    steps = data.get("steps") or []
    if not isinstance(steps, list):
        raise ValidationError(["steps must be a list."])
    wf = current_state().create_workflow(
        data.get("name") or "",
        data.get("description") or "",
        steps,
        is_default=bool(data.get("isDefault", False)),
    )
    return jsonify(wf.to_dict()), 201


@bp.get("/default")
def default_workflow():
    wf = current_state().default_workflow()
    if wf is None:
        raise NotFoundError("No workflows defined.")
    return jsonify(wf.to_dict())


@bp.get("/<workflow_id>")
def workflow_detail(workflow_id: str):
    return jsonify(current_state().get_workflow(workflow_id).to_dict())


@types_bp.get("/")
def list_document_types():
    return jsonify({"documentTypes": [t.to_dict() for t in current_state().document_types]})


@types_bp.post("/")
def create_document_type():
    data = _json_body()
    dt = current_state().create_document_type(data.get("name") or "", data.get("description") or "")
    return jsonify(dt.to_dict()), 201
