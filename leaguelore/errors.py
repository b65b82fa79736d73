"""Error taxonomy shared by the engine, the repositories and the service layer.

Every error carries a machine-readable ``code`` and the HTTP-like ``status``
the hosting service should answer with, so callers can map failures onto the
``{"success": false, "error": ...}`` envelope without inspecting types.
"""

from __future__ import annotations


class LeagueLoreError(Exception):
    code = "INTERNAL_ERROR"
    status = 500

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(LeagueLoreError):
    """Malformed filter input or a row that violates the record invariants."""

    code = "VALIDATION_ERROR"
    status = 400


class NotFoundError(LeagueLoreError):
    """The requested league (or manager) does not exist in the backing store."""

    code = "NOT_FOUND"
    status = 404


class DataIntegrityError(LeagueLoreError):
    """A matchup group did not resolve to exactly two sides.

    Raised per group and absorbed by the aggregation loop (skip + count), so it
    only reaches a caller when used outside of a batch.
    """

    code = "DATA_INTEGRITY_ERROR"
    status = 422


class UpstreamError(LeagueLoreError):
    """The backing store or remote API could not be read."""

    code = "UPSTREAM_ERROR"
    status = 502
