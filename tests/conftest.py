from datetime import datetime, timedelta, timezone

import pytest

from app.cdms.identity import IdentityProvider
from app.cdms.modules.document_control.service import create_document
from app.cdms.modules.workflows.service import create_workflow


class FixedIdentity(IdentityProvider):
    """Sequential ids and a clock that ticks one second per call."""

    def __init__(self, start: datetime = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)) -> None:
        self._n = 0
        self._now = start

    def generate_id(self) -> str:
        self._n += 1
        return f"id-{self._n}"

    def now(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now

    def today(self):
        return self._now.date()


@pytest.fixture()
def ids():
    return FixedIdentity()


@pytest.fixture()
def workflow(ids):
    return create_workflow(
        "Two Step Review",
        "Author review followed by QA approval.",
        [
            {"id": "A", "name": "Author Review", "responsibleRole": "Document Owner", "instructions": "Check content."},
            {"id": "B", "name": "QA Approval", "responsibleRole": "Quality Assurance", "instructions": "Approve for use."},
        ],
        ids=ids,
    )


@pytest.fixture()
def metadata(workflow):
    def _make(**overrides):
        data = {
            "title": "Equipment Cleaning SOP",
            "documentNumber": "SOP-001",
            "createdBy": "Jane Author",
            "issuedBy": "Jane Author",
            "issuerRole": "Process Engineer",
            "category": "Manufacturing",
            "securityLevel": "internal",
            "typeId": "type-sop",
            "workflowId": workflow.id,
            "dateOfIssue": "2026-01-10",
            "nextIssueDate": "2026-07-10",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture()
def initial_version():
    return {"versionLabel": "1.0", "changeSummary": "Initial release"}


@pytest.fixture()
def draft_doc(ids, metadata, initial_version):
    return create_document(metadata(), initial_version, ids=ids)


@pytest.fixture()
def signature():
    def _make(**overrides):
        data = {
            "signerName": "Alex Reviewer",
            "signerTitle": "QA Lead",
            "signerIdentifier": "EMP-042",
            "reason": "Content reviewed and approved",
            "credentialToken": "opaque-token",
        }
        data.update(overrides)
        return data

    return _make
