"""
Workflow Catalog module.

Named, reusable approval workflows (ordered steps) and document type
reference data. Definitions are immutable once created.
"""
