"""
Permission Core - exact-role authorization for privileged mutations.
"""

from opsconsole.kernel.permissions.authorization import (
    REQUIRED_ROLES,
    AuthorizationChecker,
    AuthorizationDecision,
    MutationKind,
    Principal,
)

__all__ = [
    "REQUIRED_ROLES",
    "AuthorizationChecker",
    "AuthorizationDecision",
    "MutationKind",
    "Principal",
]
