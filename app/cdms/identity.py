from __future__ import annotations

import uuid
from datetime import date, datetime, timezone


class IdentityProvider:
    """
    Source of unique ids and wall-clock time for the document control core.

    The core never calls uuid/datetime directly so tests can swap in a
    deterministic provider.
    """

    def generate_id(self) -> str:
        return uuid.uuid4().hex

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


system_identity = IdentityProvider()
