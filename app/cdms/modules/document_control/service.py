"""
Document lifecycle engine.

Every transition takes a document value and returns a new one; nothing is
mutated in place. A transition either returns the fully updated document
(with exactly one new audit entry) or raises, leaving the caller's value as
it was.

Transitions (all on the latest version):
- Draft        --submit-->         Under Review   (needs an assigned workflow)
- Under Review --sign step S-->    Under Review | Approved (all steps signed)
- Approved     --release-->        Effective
- any          --draft revision--> Draft (new version appended)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta

from app.cdms.audit import record_event
from app.cdms.constants import (
    ACTION_NEW_VERSION,
    ACTION_SIGNATURE,
    ACTION_STATUS_UPDATE,
    APPROVED,
    DEFAULT_EFFECTIVE_LEAD_DAYS,
    DEFAULT_QUALITY_UNIT_ACTOR,
    DEFAULT_REVIEW_INTERVAL_DAYS,
    DRAFT,
    EFFECTIVE,
    SECURITY_LEVELS,
    TERMINAL_STATES,
    UNDER_REVIEW,
)
from app.cdms.errors import InvalidTransitionError, UnknownStepError, ValidationError
from app.cdms.identity import IdentityProvider, system_identity
from app.cdms.modules.document_control.models import (
    DocumentRecord,
    DocumentVersion,
    SignatureRecord,
    WorkflowDefinition,
    WorkflowStep,
)
from app.cdms.modules.document_control.versions import append_version, latest_version, replace_latest_version
from app.cdms.utils import clean, parse_date

logger = logging.getLogger(__name__)

# (field, label, minimum length)
_REQUIRED_METADATA = (
    ("title", "Title", 3),
    ("documentNumber", "Document number", 3),
    ("createdBy", "Created by", 2),
    ("issuedBy", "Issued by", 2),
    ("issuerRole", "Issuer role", 2),
    ("category", "Category", 2),
    ("typeId", "Document type", 1),
)

_SIGNATURE_FIELDS = (
    ("signerName", "Signer name"),
    ("signerTitle", "Signer title"),
    ("signerIdentifier", "Signer ID"),
    ("reason", "Reason for signing"),
    ("credentialToken", "Credential"),
)


def _date_field(payload: dict, key: str, label: str, errors: list[str], default: date | None = None) -> date | None:
    try:
        value = parse_date(payload.get(key))
    except (AttributeError, TypeError, ValueError):
        errors.append(f"{label} must be a valid date (YYYY-MM-DD).")
        return None
    return value if value is not None else default


def validate_document_payload(metadata: dict, initial_version: dict) -> list[str]:
    """Validate document creation input. Returns list of errors."""
    errors = []
    for key, label, min_len in _REQUIRED_METADATA:
        if len(clean(metadata.get(key))) < min_len:
            if min_len > 1:
                errors.append(f"{label} must be at least {min_len} characters.")
            else:
                errors.append(f"{label} is required.")
    level = clean(metadata.get("securityLevel") or "internal").lower()
    if level not in SECURITY_LEVELS:
        errors.append(f"Invalid security level. Must be one of: {', '.join(SECURITY_LEVELS)}")
    if not clean(initial_version.get("versionLabel")):
        errors.append("Version label is required.")
    if len(clean(initial_version.get("changeSummary"))) < 5:
        errors.append("Change summary must be at least 5 characters.")
    return errors


def create_document(metadata: dict, initial_version: dict, *, ids: IdentityProvider | None = None) -> DocumentRecord:
    """
    Build a new document with exactly one Draft version and an empty audit trail.

    workflowId may be empty; such a document can never be submitted for review.
    """
    ids = ids or system_identity
    errors = validate_document_payload(metadata, initial_version)

    today = ids.today()
    date_created = _date_field(metadata, "dateCreated", "Date created", errors, today)
    date_of_issue = _date_field(metadata, "dateOfIssue", "Date of issue", errors, today)
    effective_from = _date_field(metadata, "effectiveFrom", "Effective from", errors, today)
    next_issue_date = _date_field(
        metadata, "nextIssueDate", "Next issue date", errors, today + timedelta(days=DEFAULT_REVIEW_INTERVAL_DAYS)
    )
    version_effective = _date_field(initial_version, "effectiveFrom", "Version effective from", errors, effective_from)
    version_review = _date_field(initial_version, "nextReviewOn", "Version next review", errors, next_issue_date)
    if errors:
        raise ValidationError(errors)

    created_by = clean(metadata.get("createdBy"))
    version = DocumentVersion(
        id=ids.generate_id(),
        version_label=clean(initial_version.get("versionLabel")),
        change_summary=clean(initial_version.get("changeSummary")),
        created_by=created_by,
        created_on=ids.now(),
        effective_from=version_effective,
        next_review_on=version_review,
        status=DRAFT,
        approvals=(),
    )
    doc = DocumentRecord(
        id=ids.generate_id(),
        title=clean(metadata.get("title")),
        document_number=clean(metadata.get("documentNumber")),
        current_version_label=version.version_label,
        date_created=date_created,  # type: ignore[arg-type]
        created_by=created_by,
        date_of_issue=date_of_issue,
        issued_by=clean(metadata.get("issuedBy")),
        issuer_role=clean(metadata.get("issuerRole")),
        effective_from=effective_from,
        next_issue_date=next_issue_date,
        category=clean(metadata.get("category")),
        security_level=clean(metadata.get("securityLevel") or "internal").lower(),
        type_id=clean(metadata.get("typeId")),
        workflow_id=clean(metadata.get("workflowId")) or None,
        lifecycle_state=DRAFT,
        versions=(version,),
        audit_trail=(),
    )
    logger.info("Document created id=%s number=%s version=%s", doc.id, doc.document_number, version.version_label)
    return doc


def completed_step_ids(doc: DocumentRecord) -> frozenset[str]:
    return latest_version(doc).completed_step_ids


def next_step(doc: DocumentRecord, workflow: WorkflowDefinition | None) -> WorkflowStep | None:
    """
    First step, in workflow order, not yet signed on the latest version.

    Advisory only: any incomplete step may be signed.
    """
    if workflow is None:
        return None
    done = completed_step_ids(doc)
    for st in workflow.steps:
        if st.id not in done:
            return st
    return None


def workflow_progress(doc: DocumentRecord, workflow: WorkflowDefinition | None) -> dict:
    if workflow is None:
        return {"workflowId": None, "steps": [], "completed": 0, "total": 0, "nextStepId": None}
    version = latest_version(doc)
    by_step = {a.step_id: a for a in version.approvals}
    nxt = next_step(doc, workflow)
    steps = []
    for idx, st in enumerate(workflow.steps, start=1):
        approval = by_step.get(st.id)
        steps.append(
            {
                "position": idx,
                "step": st.to_dict(),
                "completed": approval is not None,
                "signedBy": approval.signer_name if approval else None,
            }
        )
    return {
        "workflowId": workflow.id,
        "steps": steps,
        "completed": sum(1 for st in workflow.steps if st.id in by_step),
        "total": len(workflow.steps),
        "nextStepId": nxt.id if nxt else None,
    }


def submit_for_review(doc: DocumentRecord, *, ids: IdentityProvider | None = None) -> DocumentRecord:
    ids = ids or system_identity
    if not doc.workflow_id:
        raise InvalidTransitionError("Assign a workflow before submitting for review.")
    if doc.lifecycle_state != DRAFT:
        raise InvalidTransitionError(f"Only Draft documents can be submitted for review (current: {doc.lifecycle_state}).")

    version = latest_version(doc)
    entry = record_event(
        actor=doc.created_by,
        action=ACTION_STATUS_UPDATE,
        details="Document progressed to Under Review",
        document_id=doc.id,
        version_id=version.id,
        ids=ids,
    )
    return replace_latest_version(doc, replace(version, status=UNDER_REVIEW), [entry])


def validate_signature_payload(payload: dict) -> list[str]:
    errors = []
    for key, label in _SIGNATURE_FIELDS:
        if not clean(payload.get(key)):
            errors.append(f"{label} is required for an electronic signature.")
    return errors


def apply_signature(
    doc: DocumentRecord,
    workflow: WorkflowDefinition | None,
    step_id: str,
    payload: dict,
    *,
    ids: IdentityProvider | None = None,
) -> DocumentRecord:
    """
    Record an electronic signature for one workflow step on the latest version.

    Steps may be signed in any order; a step can be signed once per version.
    The version (and document) becomes Approved once every step is signed.
    """
    ids = ids or system_identity
    if not doc.workflow_id or workflow is None:
        raise InvalidTransitionError("Document has no workflow assigned.")
    if workflow.id != doc.workflow_id:
        raise InvalidTransitionError("Workflow does not match the document's assigned workflow.")
    if doc.lifecycle_state != UNDER_REVIEW:
        raise InvalidTransitionError(f"Signatures can only be applied while Under Review (current: {doc.lifecycle_state}).")

    step = workflow.step(step_id)
    if step is None:
        raise UnknownStepError(f"Step {step_id!r} is not part of workflow {workflow.name!r}.")

    version = latest_version(doc)
    if step.id in version.completed_step_ids:
        raise InvalidTransitionError(f"Step {step.name!r} is already signed for version {version.version_label}.")

    errors = validate_signature_payload(payload)
    if errors:
        raise ValidationError(errors)

    signer_name = clean(payload.get("signerName"))
    signer_identifier = clean(payload.get("signerIdentifier"))
    approval = SignatureRecord(
        id=ids.generate_id(),
        step_id=step.id,
        step_name=step.name,
        role=step.responsible_role,
        signer_name=signer_name,
        signer_title=clean(payload.get("signerTitle")),
        signer_identifier=signer_identifier,
        reason=clean(payload.get("reason")),
        credential_token=clean(payload.get("credentialToken")),
        issued_at=ids.now(),
    )
    approvals = tuple(version.approvals) + (approval,)
    all_signed = len(approvals) == len(workflow.steps)
    updated = replace(version, approvals=approvals, status=APPROVED if all_signed else UNDER_REVIEW)

    entry = record_event(
        actor=signer_name,
        action=ACTION_SIGNATURE.format(step_name=step.name),
        details=f"{step.name} signed by {signer_name} ({signer_identifier})",
        document_id=doc.id,
        version_id=version.id,
        ids=ids,
    )
    if all_signed:
        logger.info("Document %s version %s approved (%d steps)", doc.id, version.version_label, len(approvals))
    return replace_latest_version(doc, updated, [entry])


def release_effective(
    doc: DocumentRecord,
    *,
    actor: str = DEFAULT_QUALITY_UNIT_ACTOR,
    ids: IdentityProvider | None = None,
) -> DocumentRecord:
    ids = ids or system_identity
    if doc.lifecycle_state != APPROVED:
        raise InvalidTransitionError(f"Only Approved documents can be released (current: {doc.lifecycle_state}).")

    version = latest_version(doc)
    entry = record_event(
        actor=actor,
        action=ACTION_STATUS_UPDATE,
        details="Document marked as Effective and released for GMP use",
        document_id=doc.id,
        version_id=version.id,
        ids=ids,
    )
    return replace_latest_version(doc, replace(version, status=EFFECTIVE), [entry])


def draft_new_version(
    doc: DocumentRecord,
    version_label: str,
    change_summary: str,
    effective_from: date | str | None = None,
    next_review_on: date | str | None = None,
    *,
    ids: IdentityProvider | None = None,
) -> DocumentRecord:
    """
    Append a fresh Draft version; prior versions are kept as they are.

    Missing dates default to today + 7 days (effective) and today + 180 days
    (next review).
    """
    ids = ids or system_identity
    if doc.lifecycle_state in TERMINAL_STATES:
        raise InvalidTransitionError(f"{doc.lifecycle_state} documents cannot be revised.")

    errors = []
    label = clean(version_label)
    summary = clean(change_summary)
    if not label:
        errors.append("Version label is required.")
    elif any(v.version_label == label for v in doc.versions):
        errors.append(f"Version {label} already exists for this document.")
    if not summary:
        errors.append("Change summary is required.")

    today = ids.today()
    dates = {"effectiveFrom": effective_from, "nextReviewOn": next_review_on}
    eff = _date_field(dates, "effectiveFrom", "Effective from", errors, today + timedelta(days=DEFAULT_EFFECTIVE_LEAD_DAYS))
    review = _date_field(dates, "nextReviewOn", "Next review", errors, today + timedelta(days=DEFAULT_REVIEW_INTERVAL_DAYS))
    if errors:
        raise ValidationError(errors)

    version = DocumentVersion(
        id=ids.generate_id(),
        version_label=label,
        change_summary=summary,
        created_by=doc.created_by,
        created_on=ids.now(),
        effective_from=eff,
        next_review_on=review,
        status=DRAFT,
        approvals=(),
    )
    entry = record_event(
        actor=doc.created_by,
        action=ACTION_NEW_VERSION,
        details=f"Version {label} created with summary: {summary}",
        document_id=doc.id,
        version_id=version.id,
        ids=ids,
    )
    return append_version(doc, version, [entry])
