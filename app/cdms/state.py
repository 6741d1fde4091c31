"""
Single owner of the in-memory document control state.

All mutation goes through the operations below; each one reads the current
document value, runs the lifecycle engine, swaps the new value into the
state and persists the whole snapshot. Callers must serialize access (one
mutation in flight at a time); nothing here locks.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from app.cdms.constants import DEFAULT_QUALITY_UNIT_ACTOR
from app.cdms.errors import NotFoundError, ValidationError
from app.cdms.identity import IdentityProvider, system_identity
from app.cdms.modules.document_control import service as lifecycle
from app.cdms.modules.document_control.models import DMSState, DocumentRecord, DocumentType, WorkflowDefinition
from app.cdms.modules.workflows import service as catalog
from app.cdms.storage import StateStore
from app.cdms.utils import clean

logger = logging.getLogger(__name__)


class DocumentControlState:
    def __init__(
        self,
        store: StateStore,
        *,
        ids: IdentityProvider | None = None,
        quality_unit_actor: str = DEFAULT_QUALITY_UNIT_ACTOR,
    ) -> None:
        self._store = store
        self._ids = ids or system_identity
        self._quality_unit_actor = quality_unit_actor
        self._state: DMSState | None = None

    # -- reads ---------------------------------------------------------------

    @property
    def state(self) -> DMSState:
        if self._state is None:
            self._state = self._store.load()
            logger.info(
                "Loaded state: %d document types, %d workflows, %d documents",
                len(self._state.document_types),
                len(self._state.workflows),
                len(self._state.documents),
            )
        return self._state

    @property
    def documents(self) -> tuple[DocumentRecord, ...]:
        return self.state.documents

    @property
    def workflows(self) -> tuple[WorkflowDefinition, ...]:
        return self.state.workflows

    @property
    def document_types(self) -> tuple[DocumentType, ...]:
        return self.state.document_types

    def today(self) -> date:
        return self._ids.today()

    def get_document(self, doc_id: str) -> DocumentRecord:
        for d in self.state.documents:
            if d.id == doc_id:
                return d
        raise NotFoundError(f"Document {doc_id!r} not found.")

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition:
        wf = catalog.get_workflow(self.state.workflows, workflow_id)
        if wf is None:
            raise NotFoundError(f"Workflow {workflow_id!r} not found.")
        return wf

    def default_workflow(self) -> WorkflowDefinition | None:
        return catalog.default_workflow(self.state.workflows)

    def workflow_for(self, doc: DocumentRecord) -> WorkflowDefinition | None:
        return catalog.get_workflow(self.state.workflows, doc.workflow_id)

    # -- operations ----------------------------------------------------------

    def create_document(self, metadata: dict, initial_version: dict) -> DocumentRecord:
        errors = []
        number = clean(metadata.get("documentNumber"))
        if number and any(d.document_number == number for d in self.state.documents):
            errors.append("Document number already exists.")
        workflow_id = clean(metadata.get("workflowId"))
        if workflow_id and catalog.get_workflow(self.state.workflows, workflow_id) is None:
            errors.append(f"Unknown workflow {workflow_id!r}.")
        type_id = clean(metadata.get("typeId"))
        if type_id and self.state.document_types and not any(t.id == type_id for t in self.state.document_types):
            errors.append(f"Unknown document type {type_id!r}.")
        if errors:
            raise ValidationError(errors)

        doc = lifecycle.create_document(metadata, initial_version, ids=self._ids)
        self._commit(replace(self.state, documents=self.state.documents + (doc,)))
        return doc

    def submit_for_review(self, doc_id: str) -> DocumentRecord:
        doc = lifecycle.submit_for_review(self.get_document(doc_id), ids=self._ids)
        return self._put_document(doc)

    def apply_signature(self, doc_id: str, step_id: str, payload: dict) -> DocumentRecord:
        current = self.get_document(doc_id)
        doc = lifecycle.apply_signature(current, self.workflow_for(current), step_id, payload, ids=self._ids)
        return self._put_document(doc)

    def release_effective(self, doc_id: str) -> DocumentRecord:
        doc = lifecycle.release_effective(self.get_document(doc_id), actor=self._quality_unit_actor, ids=self._ids)
        return self._put_document(doc)

    def draft_new_version(
        self,
        doc_id: str,
        version_label: str,
        change_summary: str,
        effective_from: date | str | None = None,
        next_review_on: date | str | None = None,
    ) -> DocumentRecord:
        doc = lifecycle.draft_new_version(
            self.get_document(doc_id),
            version_label,
            change_summary,
            effective_from,
            next_review_on,
            ids=self._ids,
        )
        return self._put_document(doc)

    def create_workflow(self, name: str, description: str, steps: list, *, is_default: bool = False) -> WorkflowDefinition:
        wf = catalog.create_workflow(name, description, steps, is_default=is_default, ids=self._ids)
        self._commit(replace(self.state, workflows=self.state.workflows + (wf,)))
        return wf

    def create_document_type(self, name: str, description: str = "") -> DocumentType:
        dt = catalog.create_document_type(name, description, ids=self._ids)
        self._commit(replace(self.state, document_types=self.state.document_types + (dt,)))
        return dt

    # -- internals -----------------------------------------------------------

    def _put_document(self, doc: DocumentRecord) -> DocumentRecord:
        docs = tuple(doc if d.id == doc.id else d for d in self.state.documents)
        self._commit(replace(self.state, documents=docs))
        return doc

    def _commit(self, new_state: DMSState) -> None:
        # In-memory state moves first; a failed save leaves it ahead of the store.
        self._state = new_state
        try:
            self._store.save(new_state)
        except Exception:
            logger.exception("Persisting state failed; in-memory state is ahead of the store")
            raise


def init_state(app, store: StateStore, *, ids: IdentityProvider | None = None) -> DocumentControlState:
    container = DocumentControlState(
        store,
        ids=ids,
        quality_unit_actor=app.config.get("QUALITY_UNIT_ACTOR") or DEFAULT_QUALITY_UNIT_ACTOR,
    )
    app.extensions["cdms_state"] = container
    return container


def current_state(app=None) -> DocumentControlState:
    """
    The app-wide state container. Use inside request handlers.
    """
    if app is None:
        from flask import current_app

        app = current_app
    return app.extensions["cdms_state"]
