"""
Typed service failures.

Services raise these and never recover from them; the app-level error handler
rolls back the request session and renders them as JSON.
"""
from __future__ import annotations


class ServiceError(Exception):
    kind = "ServiceError"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.http_status, "kind": self.kind, "message": self.message}


class NotFound(ServiceError):
    kind = "NotFound"
    http_status = 404


class InvalidReference(NotFound):
    """A referenced entity (manager, member, question type) does not exist."""

    kind = "InvalidReference"
    http_status = 400


class AlreadyMember(ServiceError):
    kind = "AlreadyMember"
    http_status = 400


class NotMember(ServiceError):
    kind = "NotMember"
    http_status = 400


class ValidationFailure(ServiceError):
    kind = "ValidationFailure"
    http_status = 400

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["errors"] = self.errors
        return d


class Conflict(ServiceError):
    """Version mismatch or lost write race. Safe to retry after reloading."""

    kind = "Conflict"
    http_status = 409


class InUse(ServiceError):
    """Hard delete refused because other rows still depend on the entity."""

    kind = "InUse"
    http_status = 409
