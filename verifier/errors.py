"""
Verification failure taxonomy.
"""
from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    DUPLICATE_REFERENCE = "duplicate_reference"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    FETCH_FAILURE = "fetch_failure"
    EXTRACTION_FAILURE = "extraction_failure"
    VALIDATION_FAILURE = "validation_failure"
    NOTIFICATION_FAILURE = "notification_failure"
    TIMEOUT = "timeout"


# Duplicate references are terminal with no side effects, so they are not audited.
AUDITED_KINDS = frozenset(kind for kind in FailureKind if kind is not FailureKind.DUPLICATE_REFERENCE)


class VerificationError(Exception):
    """Raised by a pipeline stage; converted to a failed result by the orchestrator."""

    def __init__(self, reason: str, kind: FailureKind):
        super().__init__(reason)
        self.reason = reason
        self.kind = kind


class FetchError(Exception):
    """A receipt source could not be read (non-2xx status or transport error)."""

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code
