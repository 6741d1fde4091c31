from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from app.cdms.constants import DRAFT
from app.cdms.utils import iso, parse_date, parse_datetime


@dataclass(frozen=True)
class DocumentType:
    id: str
    name: str
    description: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentType":
        return cls(id=data["id"], name=data["name"], description=data.get("description") or "")


@dataclass(frozen=True)
class WorkflowStep:
    id: str
    name: str
    responsible_role: str
    instructions: str
    requires_signature: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "responsibleRole": self.responsible_role,
            "instructions": self.instructions,
            "requiresSignature": self.requires_signature,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowStep":
        return cls(
            id=data["id"],
            name=data["name"],
            responsible_role=data["responsibleRole"],
            instructions=data.get("instructions") or "",
            requires_signature=bool(data.get("requiresSignature", True)),
        )


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Ordered approval steps. Referenced by documents by id only; never edited
    after creation (signature records snapshot the step text instead).
    """

    id: str
    name: str
    description: str
    steps: tuple[WorkflowStep, ...]
    is_default: bool = False

    def step(self, step_id: str) -> WorkflowStep | None:
        for st in self.steps:
            if st.id == step_id:
                return st
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": [st.to_dict() for st in self.steps],
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowDefinition":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description") or "",
            steps=tuple(WorkflowStep.from_dict(st) for st in data.get("steps") or []),
            is_default=bool(data.get("isDefault", False)),
        )


@dataclass(frozen=True)
class SignatureRecord:
    """
    One approval for one workflow step of one version.

    step_name and role are copied from the step at signing time.
    credential_token is opaque; it is stored, never verified.
    """

    id: str
    step_id: str
    step_name: str
    role: str
    signer_name: str
    signer_title: str
    signer_identifier: str
    reason: str
    credential_token: str
    issued_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stepId": self.step_id,
            "stepName": self.step_name,
            "role": self.role,
            "signerName": self.signer_name,
            "signerTitle": self.signer_title,
            "signerIdentifier": self.signer_identifier,
            "reason": self.reason,
            "credentialToken": self.credential_token,
            "issuedAt": iso(self.issued_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SignatureRecord":
        return cls(
            id=data["id"],
            step_id=data["stepId"],
            step_name=data["stepName"],
            role=data["role"],
            signer_name=data["signerName"],
            signer_title=data["signerTitle"],
            signer_identifier=data["signerIdentifier"],
            reason=data["reason"],
            credential_token=data["credentialToken"],
            issued_at=parse_datetime(data["issuedAt"]),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class DocumentVersion:
    id: str
    version_label: str
    change_summary: str
    created_by: str
    created_on: datetime
    effective_from: date | None = None
    next_review_on: date | None = None
    status: str = DRAFT
    approvals: tuple[SignatureRecord, ...] = ()

    @property
    def completed_step_ids(self) -> frozenset[str]:
        return frozenset(a.step_id for a in self.approvals)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "versionLabel": self.version_label,
            "changeSummary": self.change_summary,
            "createdBy": self.created_by,
            "createdOn": iso(self.created_on),
            "effectiveFrom": iso(self.effective_from),
            "nextReviewOn": iso(self.next_review_on),
            "status": self.status,
            "approvals": [a.to_dict() for a in self.approvals],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentVersion":
        return cls(
            id=data["id"],
            version_label=data["versionLabel"],
            change_summary=data.get("changeSummary") or "",
            created_by=data.get("createdBy") or "",
            created_on=parse_datetime(data["createdOn"]),  # type: ignore[arg-type]
            effective_from=parse_date(data.get("effectiveFrom")),
            next_review_on=parse_date(data.get("nextReviewOn")),
            status=data.get("status") or DRAFT,
            approvals=tuple(SignatureRecord.from_dict(a) for a in data.get("approvals") or []),
        )


@dataclass(frozen=True)
class AuditEntry:
    id: str
    timestamp: datetime
    actor: str
    action: str
    details: str
    related_document_id: str | None = None
    related_version_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": iso(self.timestamp),
            "actor": self.actor,
            "action": self.action,
            "details": self.details,
            "relatedDocumentId": self.related_document_id,
            "relatedVersionId": self.related_version_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        return cls(
            id=data["id"],
            timestamp=parse_datetime(data["timestamp"]),  # type: ignore[arg-type]
            actor=data["actor"],
            action=data["action"],
            details=data.get("details") or "",
            related_document_id=data.get("relatedDocumentId"),
            related_version_id=data.get("relatedVersionId"),
        )


@dataclass(frozen=True)
class DocumentRecord:
    """
    A controlled document. lifecycle_state always equals the status of the
    last element of versions; versions and audit_trail only ever grow.
    """

    id: str
    title: str
    document_number: str
    current_version_label: str
    date_created: date
    created_by: str
    date_of_issue: date | None
    issued_by: str
    issuer_role: str
    effective_from: date | None
    next_issue_date: date | None
    category: str
    security_level: str
    type_id: str
    workflow_id: str | None
    lifecycle_state: str
    versions: tuple[DocumentVersion, ...]
    audit_trail: tuple[AuditEntry, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "documentNumber": self.document_number,
            "currentVersionLabel": self.current_version_label,
            "dateCreated": iso(self.date_created),
            "createdBy": self.created_by,
            "dateOfIssue": iso(self.date_of_issue),
            "issuedBy": self.issued_by,
            "issuerRole": self.issuer_role,
            "effectiveFrom": iso(self.effective_from),
            "nextIssueDate": iso(self.next_issue_date),
            "category": self.category,
            "securityLevel": self.security_level,
            "typeId": self.type_id,
            "workflowId": self.workflow_id,
            "lifecycleState": self.lifecycle_state,
            "versions": [v.to_dict() for v in self.versions],
            "auditTrail": [e.to_dict() for e in self.audit_trail],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentRecord":
        return cls(
            id=data["id"],
            title=data["title"],
            document_number=data["documentNumber"],
            current_version_label=data["currentVersionLabel"],
            date_created=parse_date(data["dateCreated"]),  # type: ignore[arg-type]
            created_by=data["createdBy"],
            date_of_issue=parse_date(data.get("dateOfIssue")),
            issued_by=data.get("issuedBy") or "",
            issuer_role=data.get("issuerRole") or "",
            effective_from=parse_date(data.get("effectiveFrom")),
            next_issue_date=parse_date(data.get("nextIssueDate")),
            category=data.get("category") or "",
            security_level=data.get("securityLevel") or "internal",
            type_id=data.get("typeId") or "",
            workflow_id=data.get("workflowId") or None,
            lifecycle_state=data["lifecycleState"],
            versions=tuple(DocumentVersion.from_dict(v) for v in data.get("versions") or []),
            audit_trail=tuple(AuditEntry.from_dict(e) for e in data.get("auditTrail") or []),
        )


@dataclass(frozen=True)
class DMSState:
    """Everything the store persists, as one snapshot."""

    document_types: tuple[DocumentType, ...] = ()
    workflows: tuple[WorkflowDefinition, ...] = ()
    documents: tuple[DocumentRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "documentTypes": [t.to_dict() for t in self.document_types],
            "workflows": [w.to_dict() for w in self.workflows],
            "documents": [d.to_dict() for d in self.documents],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DMSState":
        return cls(
            document_types=tuple(DocumentType.from_dict(t) for t in data.get("documentTypes") or []),
            workflows=tuple(WorkflowDefinition.from_dict(w) for w in data.get("workflows") or []),
            documents=tuple(DocumentRecord.from_dict(d) for d in data.get("documents") or []),
        )
