"""
Audit Core - append-only recording and read-only querying of audit records.
"""

from opsconsole.kernel.audit.audit_recorder import AuditRecorder, outcome_for
from opsconsole.kernel.audit.audit_query import AuditLogQuery, AuditPage, matches_search

__all__ = [
    "AuditRecorder",
    "outcome_for",
    "AuditLogQuery",
    "AuditPage",
    "matches_search",
]
