from flask import Blueprint, jsonify

from app.cdms.modules.document_control.reporting import summarize_documents
from app.cdms.state import current_state

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for k8s/DO probes. No storage access, minimal overhead.
    """
    return "ok", 200


@bp.get("/api/dashboard")
def dashboard():
    st = current_state()
    return jsonify(summarize_documents(st.documents, st.today()))
