from __future__ import annotations

from app.cdms.state import DocumentControlState

DEFAULT_DOCUMENT_TYPES = (
    ("Standard Operating Procedure", "Step-by-step instructions for routine GMP operations."),
    ("Work Instruction", "Task-level instructions supporting an SOP."),
    ("Policy", "High-level quality policy statements."),
    ("Form", "Controlled templates used to capture records."),
)

DEFAULT_WORKFLOW = {
    "name": "Standard GMP Review",
    "description": "Author review, QA review and Quality Head approval for controlled documents.",
    "steps": [
        {
            "name": "Author Review",
            "responsibleRole": "Document Owner",
            "instructions": "Review content for accuracy and compliance.",
            "requiresSignature": True,
        },
        {
            "name": "QA Review",
            "responsibleRole": "Quality Assurance",
            "instructions": "Verify the document meets GMP and data integrity requirements.",
            "requiresSignature": True,
        },
        {
            "name": "Quality Head Approval",
            "responsibleRole": "Head of Quality",
            "instructions": "Approve the document for release.",
            "requiresSignature": True,
        },
    ],
}


def seed_defaults(st: DocumentControlState) -> bool:
    """
    Add default document types and the default workflow when the catalog is
    empty. Idempotent: existing reference data is never touched.
    """
    changed = False
    if not st.document_types:
        for name, description in DEFAULT_DOCUMENT_TYPES:
            st.create_document_type(name, description)
        changed = True
    if not st.workflows:
        st.create_workflow(
            DEFAULT_WORKFLOW["name"],
            DEFAULT_WORKFLOW["description"],
            DEFAULT_WORKFLOW["steps"],
            is_default=True,
        )
        changed = True
    return changed
