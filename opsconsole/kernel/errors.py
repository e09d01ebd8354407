"""
Error taxonomy for privileged mutations.

Every failure the pipeline reports is a MutationError subclass carrying a
kind (what went wrong), an HTTP status and a JSON-safe details dict. The
API layer renders them as {"success": false, "error": ...}; the audit
recorder stores kind and message in the record details.
"""

import uuid
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Classification of pipeline failures."""
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    PARTIAL_FAILURE = "partial_failure"
    TIMEOUT = "timeout"
    UPSTREAM_FAILURE = "upstream_failure"
    UNKNOWN = "unknown"


class MutationError(Exception):
    """Base class for classified pipeline failures."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Payload used both for audit details and error responses."""
        return {"error_kind": self.kind.value, "error": self.message, **self.details}


class Unauthorized(MutationError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 401


class Forbidden(MutationError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403


class InvalidInput(MutationError):
    kind = ErrorKind.INVALID_INPUT
    status_code = 400


class Conflict(MutationError):
    kind = ErrorKind.CONFLICT
    status_code = 400


class NotFound(MutationError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class MutationTimeout(MutationError):
    kind = ErrorKind.TIMEOUT
    status_code = 504


class UpstreamFailure(MutationError):
    kind = ErrorKind.UPSTREAM_FAILURE
    status_code = 500


class IdentityProviderError(UpstreamFailure):
    """The identity provider rejected the request (e.g. password policy)."""
    status_code = 400


class ServiceCredentialMissing(UpstreamFailure):
    """No privileged service credential is configured; refuse to run."""


class PartialFailure(MutationError):
    """A multi-step mutation stopped after some steps were made durable."""

    kind = ErrorKind.PARTIAL_FAILURE
    status_code = 500

    def __init__(
        self,
        message: str,
        identity_id: uuid.UUID,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, {"identity_id": str(identity_id), **(details or {})})
        self.identity_id = identity_id
