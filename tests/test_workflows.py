from dataclasses import FrozenInstanceError

import pytest

from app.cdms.errors import ValidationError
from app.cdms.modules.document_control.models import WorkflowDefinition
from app.cdms.modules.workflows.service import (
    create_document_type,
    create_workflow,
    default_workflow,
    get_workflow,
    validate_workflow_payload,
)

STEP = {"name": "QA Review", "responsibleRole": "Quality Assurance", "instructions": "Verify GMP compliance."}


def test_create_workflow_keeps_step_order_and_generates_ids(ids):
    wf = create_workflow(
        "Standard Review",
        "Two-step departmental review.",
        [STEP, {"name": "Head Approval", "role": "Head of Quality", "instructions": "Approve release.", "requiresESignature": False}],
        ids=ids,
    )
    assert [st.name for st in wf.steps] == ["QA Review", "Head Approval"]
    assert all(st.id for st in wf.steps)
    assert len({st.id for st in wf.steps}) == 2
    assert wf.steps[1].responsible_role == "Head of Quality"
    assert wf.steps[1].requires_signature is False
    assert wf.steps[0].requires_signature is True
    assert wf.is_default is False


def test_create_workflow_requires_a_step(ids):
    with pytest.raises(ValidationError) as exc:
        create_workflow("Standard Review", "Two-step departmental review.", [], ids=ids)
    assert any("at least one step" in m for m in exc.value.errors)


def test_validate_workflow_payload_checks_every_field():
    errors = validate_workflow_payload(
        "ab",
        "short",
        [{"name": "x", "responsibleRole": "", "instructions": "no"}],
    )
    assert len(errors) == 5


def test_duplicate_step_ids_are_rejected(ids):
    steps = [dict(STEP, id="s1"), dict(STEP, id="s1")]
    with pytest.raises(ValidationError):
        create_workflow("Standard Review", "Two-step departmental review.", steps, ids=ids)


def test_workflow_definitions_are_immutable(workflow):
    with pytest.raises(FrozenInstanceError):
        workflow.name = "Edited"  # type: ignore[misc]
    assert isinstance(workflow.steps, tuple)


def test_default_workflow_prefers_flagged_definition(ids):
    first = create_workflow("First Review", "The first workflow defined.", [STEP], ids=ids)
    flagged = create_workflow("Flagged Review", "The default workflow here.", [STEP], is_default=True, ids=ids)

    assert default_workflow([first, flagged]) is flagged
    assert default_workflow([first]) is first
    assert default_workflow([]) is None


def test_get_workflow_by_id(workflow):
    assert get_workflow([workflow], workflow.id) is workflow
    assert get_workflow([workflow], "missing") is None
    assert get_workflow([workflow], None) is None


def test_workflow_round_trips_through_dict(workflow):
    assert WorkflowDefinition.from_dict(workflow.to_dict()) == workflow


def test_create_document_type(ids):
    dt = create_document_type("  SOP ", "Standard Operating Procedure", ids=ids)
    assert dt.name == "SOP"
    with pytest.raises(ValidationError):
        create_document_type("", ids=ids)


def test_create_workflow_rejects_steps_that_are_not_objects(ids):
    with pytest.raises(ValidationError) as exc:
        create_workflow("Review flow", "A description here.", ["not-a-step", STEP], ids=ids)
    assert exc.value.errors == ["Step 1: must be an object."]


def test_requires_signature_must_be_a_boolean(ids):
    errors = validate_workflow_payload(
        "Review flow", "A description here.", [dict(STEP, requiresSignature="false")]
    )
    assert errors == ["Step 1: requiresSignature must be true or false."]

    wf = create_workflow("Review flow", "A description here.", [dict(STEP, requiresSignature=False)], ids=ids)
    assert wf.steps[0].requires_signature is False
