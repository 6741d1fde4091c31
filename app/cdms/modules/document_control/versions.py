from __future__ import annotations

import re
from dataclasses import replace
from typing import Iterable

from app.cdms.audit import append_entries
from app.cdms.modules.document_control.models import AuditEntry, DocumentRecord, DocumentVersion


def latest_version(doc: DocumentRecord) -> DocumentVersion:
    """The mutation target for every lifecycle transition."""
    if not doc.versions:
        raise ValueError(f"Document {doc.id} has no versions.")
    return doc.versions[-1]


def append_version(
    doc: DocumentRecord,
    new_version: DocumentVersion,
    audit_entries: Iterable[AuditEntry],
) -> DocumentRecord:
    """
    Return a new document with exactly one more version, which becomes latest.

    Prior versions are carried over untouched; lifecycle_state follows the
    new version's status.
    """
    return replace(
        doc,
        current_version_label=new_version.version_label,
        lifecycle_state=new_version.status,
        versions=tuple(doc.versions) + (new_version,),
        audit_trail=append_entries(doc.audit_trail, audit_entries),
    )


def replace_latest_version(
    doc: DocumentRecord,
    updated: DocumentVersion,
    audit_entries: Iterable[AuditEntry],
) -> DocumentRecord:
    """Swap in a new value for the latest version (same id), keeping lifecycle_state in sync."""
    current = latest_version(doc)
    if updated.id != current.id:
        raise ValueError("Only the latest version can be updated.")
    return replace(
        doc,
        lifecycle_state=updated.status,
        versions=tuple(doc.versions[:-1]) + (updated,),
        audit_trail=append_entries(doc.audit_trail, audit_entries),
    )


def suggest_next_version_label(current: str) -> str:
    """
    Propose the label for the next revision.

    Supports:
    - dotted numbers: "1.0" -> "1.1", "2.9" -> "2.10"
    - integers: "0" -> "1"
    - letters: "A" -> "B", "Z" -> "AA"
    Anything else gets ".1" appended.
    """
    cur = (current or "").strip().upper()
    if not cur:
        return "1.0"

    if re.fullmatch(r"\d+(\.\d+)+", cur):
        head, _, tail = cur.rpartition(".")
        return f"{head}.{int(tail) + 1}"

    if re.fullmatch(r"\d+", cur):
        return str(int(cur) + 1)

    if not re.fullmatch(r"[A-Z]+", cur):
        return f"{current.strip()}.1"

    # Base-26 increment, A=1 ... Z=26 (Excel-style)
    n = 0
    for ch in cur:
        n = n * 26 + (ord(ch) - ord("A") + 1)
    n += 1
    out = []
    while n > 0:
        n -= 1
        out.append(chr(ord("A") + (n % 26)))
        n //= 26
    return "".join(reversed(out))
