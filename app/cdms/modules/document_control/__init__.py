"""
Document Control module.

Controlled-document lifecycle (21 CFR Part 11 flavoured):
- Documents move Draft -> Under Review -> Approved -> Effective
- Approval steps come from the assigned workflow; each completed step is an
  electronic signature record on the latest version
- Versions and the audit trail are append-only; a new revision is a new
  version, never an edit of an old one
"""
