from __future__ import annotations

import logging
from typing import Iterable

from app.cdms.identity import IdentityProvider, system_identity
from app.cdms.modules.document_control.models import AuditEntry

logger = logging.getLogger("cdms.audit")


def record_event(
    *,
    actor: str,
    action: str,
    details: str,
    document_id: str | None = None,
    version_id: str | None = None,
    ids: IdentityProvider | None = None,
) -> AuditEntry:
    """
    Build one append-only audit entry, timestamped now.

    The entry is not attached to anything here; callers hand it to the
    version chain together with the new document value.
    """
    ids = ids or system_identity
    ev = AuditEntry(
        id=ids.generate_id(),
        timestamp=ids.now(),
        actor=actor,
        action=action,
        details=details,
        related_document_id=document_id,
        related_version_id=version_id,
    )
    logger.info(
        "audit action=%r actor=%r document_id=%s version_id=%s details=%r",
        action,
        actor,
        document_id,
        version_id,
        details,
    )
    return ev


def append_entries(trail: tuple[AuditEntry, ...], entries: Iterable[AuditEntry]) -> tuple[AuditEntry, ...]:
    return tuple(trail) + tuple(entries)


def review_order(trail: Iterable[AuditEntry]) -> list[AuditEntry]:
    """
    Newest first, for display. Stored order stays chronological; entries with
    equal timestamps keep reverse insertion order.
    """
    indexed = list(enumerate(trail))
    indexed.sort(key=lambda pair: (pair[1].timestamp, pair[0]), reverse=True)
    return [e for _, e in indexed]
