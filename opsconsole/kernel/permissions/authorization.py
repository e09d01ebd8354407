"""
Authorization checker for privileged mutations.

A caller is allowed only if the role stored on their profile is exactly the
role the mutation requires. Roles are read from the store on every call;
the role claim inside the bearer token is never consulted.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from opsconsole.kernel.errors import ErrorKind, Forbidden, MutationError, Unauthorized
from opsconsole.kernel.identity.identity_service import IdentityService
from opsconsole.kernel.models.user import ProfileStatus, UserRole
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)


class MutationKind(str, Enum):
    """Privileged operations gated by the checker."""
    PROVISION_ACCOUNT = "provision_account"
    DELETE_DELIVERY_NOTE = "delete_delivery_note"
    READ_AUDIT_LOG = "read_audit_log"


# Exact role each operation requires; there is no role hierarchy
REQUIRED_ROLES: Dict[MutationKind, UserRole] = {
    MutationKind.PROVISION_ACCOUNT: UserRole.ADMIN,
    MutationKind.DELETE_DELIVERY_NOTE: UserRole.ADMIN,
    MutationKind.READ_AUDIT_LOG: UserRole.ADMIN,
}


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, resolved fresh for one mutation attempt."""

    user_id: uuid.UUID
    email: str
    role: UserRole
    company_id: Optional[str] = None


@dataclass(frozen=True)
class AuthorizationDecision:
    """Allowed or Denied, with the principal when one could be resolved."""

    allowed: bool
    principal: Optional[Principal] = None
    reason: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def allow(cls, principal: Principal) -> "AuthorizationDecision":
        return cls(allowed=True, principal=principal)

    @classmethod
    def deny(
        cls,
        reason: ErrorKind,
        message: str,
        principal: Optional[Principal] = None,
    ) -> "AuthorizationDecision":
        return cls(allowed=False, principal=principal, reason=reason, message=message)

    def denial_error(self) -> MutationError:
        """The error a denied decision maps to."""
        if self.reason == ErrorKind.FORBIDDEN:
            return Forbidden(self.message)
        return Unauthorized(self.message)

    def raise_for_denial(self) -> Principal:
        """Return the principal if allowed, otherwise raise the matching error."""
        if self.allowed and self.principal is not None:
            return self.principal
        raise self.denial_error()


class AuthorizationChecker:
    """
    Resolve a bearer credential and check it against a required role.

    Read-only; safe to call repeatedly and concurrently. Fails closed:
    any error while resolving the caller yields an UNAUTHORIZED denial.
    """

    def __init__(self, identity_service: IdentityService):
        self.identity_service = identity_service

    async def authorize(
        self,
        credential: Optional[str],
        required_role: UserRole,
    ) -> AuthorizationDecision:
        """
        Decide whether the credential's holder may perform a mutation.

        Args:
            credential: Raw bearer token (without the "Bearer " prefix)
            required_role: The exact role the mutation requires

        Returns:
            AuthorizationDecision; Denied carries UNAUTHORIZED for credential
            problems and FORBIDDEN for a valid caller lacking the role
        """
        if not credential:
            return AuthorizationDecision.deny(ErrorKind.UNAUTHORIZED, "Unauthorized")

        try:
            identity = await self.identity_service.resolve_credential(credential)
            if identity is None:
                return AuthorizationDecision.deny(ErrorKind.UNAUTHORIZED, "Invalid or expired token")

            profile = await self.identity_service.get_profile(identity.id)
        except Exception:
            logger.exception("Credential resolution failed; denying")
            return AuthorizationDecision.deny(ErrorKind.UNAUTHORIZED, "Unable to validate credential")

        if profile is None:
            return AuthorizationDecision.deny(ErrorKind.UNAUTHORIZED, "No profile for credential")

        try:
            role = UserRole(profile.role_value)
        except ValueError:
            logger.warning(
                "Profile has unknown role; denying",
                extra={"user_id": str(profile.id), "role": profile.role_value},
            )
            return AuthorizationDecision.deny(ErrorKind.FORBIDDEN, "Unknown role")

        principal = Principal(
            user_id=profile.id,
            email=profile.email,
            role=role,
            company_id=profile.company_id,
        )

        if profile.status_value != ProfileStatus.ACTIVE.value:
            return AuthorizationDecision.deny(
                ErrorKind.FORBIDDEN, "User account is disabled", principal=principal
            )

        if role != required_role:
            return AuthorizationDecision.deny(
                ErrorKind.FORBIDDEN,
                f"Insufficient privileges. Required: {required_role.value}",
                principal=principal,
            )

        return AuthorizationDecision.allow(principal)

    async def authorize_mutation(
        self,
        credential: Optional[str],
        kind: MutationKind,
    ) -> AuthorizationDecision:
        """Authorize against the role registered for a mutation kind."""
        return await self.authorize(credential, REQUIRED_ROLES[kind])

    async def require(self, credential: Optional[str], kind: MutationKind) -> Principal:
        """Authorize or raise Unauthorized / Forbidden."""
        decision = await self.authorize_mutation(credential, kind)
        return decision.raise_for_denial()
