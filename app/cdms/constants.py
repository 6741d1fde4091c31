"""
Central constants for the document control application.
"""
from __future__ import annotations

# Lifecycle states (display values are persisted as-is)
DRAFT = "Draft"
UNDER_REVIEW = "Under Review"
PENDING_APPROVAL = "Pending Approval"  # reserved; no transition produces it yet
APPROVED = "Approved"
EFFECTIVE = "Effective"
OBSOLETE = "Obsolete"

LIFECYCLE_STATES = (DRAFT, UNDER_REVIEW, PENDING_APPROVAL, APPROVED, EFFECTIVE, OBSOLETE)
TERMINAL_STATES = frozenset({OBSOLETE})

SECURITY_LEVELS = ("confidential", "internal", "restricted", "public")

# Audit action labels
ACTION_STATUS_UPDATE = "Lifecycle Status Update"
ACTION_SIGNATURE = "Electronic Signature - {step_name}"
ACTION_NEW_VERSION = "New Version Drafted"

DEFAULT_QUALITY_UNIT_ACTOR = "Quality Unit"

# Defaults applied when a new revision is drafted without dates
DEFAULT_EFFECTIVE_LEAD_DAYS = 7
DEFAULT_REVIEW_INTERVAL_DAYS = 180

UPCOMING_REVIEW_WINDOW_DAYS = 30
