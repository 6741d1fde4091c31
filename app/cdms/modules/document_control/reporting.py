from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from app.cdms.constants import EFFECTIVE, UPCOMING_REVIEW_WINDOW_DAYS
from app.cdms.modules.document_control.models import DocumentRecord


def summarize_documents(documents: Iterable[DocumentRecord], today: date, *, recent_limit: int = 5) -> dict:
    """Dashboard counters plus the most recently issued documents."""
    docs = list(documents)
    horizon = today + timedelta(days=UPCOMING_REVIEW_WINDOW_DAYS)
    upcoming = [d for d in docs if d.next_issue_date is not None and d.next_issue_date < horizon]
    recent = sorted(docs, key=lambda d: d.date_of_issue or date.min, reverse=True)[:recent_limit]
    return {
        "totalDocuments": len(docs),
        "effective": sum(1 for d in docs if d.lifecycle_state == EFFECTIVE),
        "restricted": sum(1 for d in docs if d.security_level != "public"),
        "upcomingReviews": len(upcoming),
        "recent": [
            {
                "id": d.id,
                "title": d.title,
                "documentNumber": d.document_number,
                "currentVersionLabel": d.current_version_label,
                "lifecycleState": d.lifecycle_state,
                "securityLevel": d.security_level,
                "dateOfIssue": d.date_of_issue.isoformat() if d.date_of_issue else None,
            }
            for d in recent
        ],
    }
