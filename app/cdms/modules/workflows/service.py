from __future__ import annotations

import logging
from typing import Iterable

from app.cdms.errors import ValidationError
from app.cdms.identity import IdentityProvider, system_identity
from app.cdms.modules.document_control.models import DocumentType, WorkflowDefinition, WorkflowStep
from app.cdms.utils import clean

logger = logging.getLogger(__name__)

MIN_NAME = 3
MIN_DESCRIPTION = 10
MIN_STEP_NAME = 3
MIN_STEP_ROLE = 3
MIN_STEP_INSTRUCTIONS = 5


def _step_fields(step: WorkflowStep | dict) -> dict:
    if isinstance(step, WorkflowStep):
        return {
            "id": step.id,
            "name": step.name,
            "responsible_role": step.responsible_role,
            "instructions": step.instructions,
            "requires_signature": step.requires_signature,
        }
    return {
        "id": clean(step.get("id")),
        "name": clean(step.get("name")),
        "responsible_role": clean(step.get("responsibleRole") or step.get("role")),
        "instructions": clean(step.get("instructions")),
        "requires_signature": step.get("requiresSignature", step.get("requiresESignature", True)),
    }


def validate_workflow_payload(name: str, description: str, steps: Iterable[WorkflowStep | dict]) -> list[str]:
    """Validate workflow creation input. Returns list of errors."""
    errors = []
    if len(clean(name)) < MIN_NAME:
        errors.append(f"Workflow name must be at least {MIN_NAME} characters.")
    if len(clean(description)) < MIN_DESCRIPTION:
        errors.append(f"Workflow description must be at least {MIN_DESCRIPTION} characters.")
    steps = list(steps or [])
    if not steps:
        errors.append("A workflow needs at least one step.")

    seen: set[str] = set()
    for idx, raw in enumerate(steps, start=1):
        if not isinstance(raw, (WorkflowStep, dict)):
            errors.append(f"Step {idx}: must be an object.")
            continue
        st = _step_fields(raw)
        if len(st["name"]) < MIN_STEP_NAME:
            errors.append(f"Step {idx}: name must be at least {MIN_STEP_NAME} characters.")
        if len(st["responsible_role"]) < MIN_STEP_ROLE:
            errors.append(f"Step {idx}: responsible role must be at least {MIN_STEP_ROLE} characters.")
        if len(st["instructions"]) < MIN_STEP_INSTRUCTIONS:
            errors.append(f"Step {idx}: instructions must be at least {MIN_STEP_INSTRUCTIONS} characters.")
        if not isinstance(st["requires_signature"], bool):
            errors.append(f"Step {idx}: requiresSignature must be true or false.")
        if st["id"]:
            if st["id"] in seen:
                errors.append(f"Step {idx}: duplicate step id {st['id']!r}.")
            seen.add(st["id"])
    return errors


def create_workflow(
    name: str,
    description: str,
    steps: Iterable[WorkflowStep | dict],
    *,
    is_default: bool = False,
    ids: IdentityProvider | None = None,
) -> WorkflowDefinition:
    """Create a new immutable workflow definition; steps keep the order given."""
    ids = ids or system_identity
    steps = list(steps or [])
    errors = validate_workflow_payload(name, description, steps)
    if errors:
        raise ValidationError(errors)

    built = []
    for st in steps:
        fields = _step_fields(st)
        fields["id"] = fields["id"] or ids.generate_id()
        built.append(WorkflowStep(**fields))

    wf = WorkflowDefinition(
        id=ids.generate_id(),
        name=clean(name),
        description=clean(description),
        steps=tuple(built),
        is_default=bool(is_default),
    )
    logger.info("Workflow created id=%s name=%r steps=%d", wf.id, wf.name, len(wf.steps))
    return wf


def create_document_type(name: str, description: str = "", *, ids: IdentityProvider | None = None) -> DocumentType:
    ids = ids or system_identity
    if not clean(name):
        raise ValidationError(["Document type name is required."])
    return DocumentType(id=ids.generate_id(), name=clean(name), description=clean(description))


def get_workflow(workflows: Iterable[WorkflowDefinition], workflow_id: str | None) -> WorkflowDefinition | None:
    if not workflow_id:
        return None
    for wf in workflows:
        if wf.id == workflow_id:
            return wf
    return None


def default_workflow(workflows: Iterable[WorkflowDefinition]) -> WorkflowDefinition | None:
    """First workflow flagged as default, else the first in the catalog."""
    workflows = list(workflows)
    for wf in workflows:
        if wf.is_default:
            return wf
    return workflows[0] if workflows else None
