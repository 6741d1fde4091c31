from __future__ import annotations


class DocumentControlError(Exception):
    """Base class for failures surfaced to callers of the document control core."""

    status_code = 400

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        out: dict[str, object] = {"error": type(self).__name__, "message": self.message}
        if self.errors:
            out["errors"] = self.errors
        return out


class ValidationError(DocumentControlError):
    """Missing or malformed required field. Nothing was changed."""

    status_code = 400

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "Invalid input.", errors=errors)


class InvalidTransitionError(DocumentControlError):
    """A lifecycle guard failed; the document keeps its current state."""

    status_code = 409


class UnknownStepError(DocumentControlError):
    status_code = 404


class NotFoundError(DocumentControlError):
    status_code = 404
