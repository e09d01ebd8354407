"""
Provision a new console account: authentication identity, then profile.

The two steps go through the identity provider separately. If the profile
step fails after the identity exists, the engine tries to delete the
identity again; only when that is disabled or fails does it report a
PartialFailure naming the orphaned identity.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from email_validator import EmailNotValidError, validate_email

from opsconsole.kernel.errors import (
    Conflict,
    InvalidInput,
    MutationError,
    PartialFailure,
    UpstreamFailure,
)
from opsconsole.kernel.identity.identity_service import IdentityAdmin, IdentityService
from opsconsole.kernel.identity.temporary_password import (
    DEFAULT_PASSWORD_LENGTH,
    generate_temporary_password,
)
from opsconsole.kernel.models.user import AuthIdentity, Profile, ProfileStatus, UserRole
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)

PROFILE_FIELDS = ("phone", "company_id", "department", "position")


@dataclass
class ProvisionAccountRequest:
    """Transient provisioning request; never persisted."""

    email: Optional[str]
    full_name: Optional[str]
    role: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    company_id: Optional[str] = None

    def audit_details(self) -> Dict[str, Any]:
        """Request fields safe to store in the audit log (never the password)."""
        return {
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "company_id": self.company_id,
            "password_supplied": bool(self.password),
        }


@dataclass
class ProvisioningResult:
    """A fully provisioned account."""

    identity: AuthIdentity
    profile: Profile
    # Only set when the password was generated here; shown to the caller once
    generated_password: Optional[str] = field(default=None, repr=False)

    @property
    def user_id(self) -> uuid.UUID:
        return self.identity.id

    def audit_details(self) -> Dict[str, Any]:
        return {
            "email": self.profile.email,
            "role": self.profile.role_value,
            "status": self.profile.status_value,
            "password_generated": self.generated_password is not None,
        }


class AccountProvisioningEngine:
    """
    Two-step account creation with optional compensation.

    Usage:
        engine = AccountProvisioningEngine(identity_service, identity_admin)
        result = await engine.provision(ProvisionAccountRequest(email=..., full_name=...))
    """

    def __init__(
        self,
        identity_service: IdentityService,
        identity_admin: IdentityAdmin,
        rollback_on_profile_failure: bool = True,
        password_length: int = DEFAULT_PASSWORD_LENGTH,
    ):
        self.identity_service = identity_service
        self.identity_admin = identity_admin
        self.rollback_on_profile_failure = rollback_on_profile_failure
        self.password_length = password_length

    async def provision(self, request: ProvisionAccountRequest) -> ProvisioningResult:
        """
        Create the identity and its profile.

        Raises:
            ServiceCredentialMissing: No service credential configured
            InvalidInput: Missing email/full name, malformed email, unknown role
            Conflict: The email is already in use
            IdentityProviderError: The identity provider rejected the identity
            UpstreamFailure: Profile step failed and the identity was rolled back
            PartialFailure: Profile step failed and the identity remains
        """
        # Fail closed before any step if there is no privileged credential
        self.identity_admin.ensure_configured()

        email, full_name, role = self._validate(request)

        if await self.identity_service.email_in_use(email):
            raise Conflict("User with this email already exists", {"email": email})

        generated: Optional[str] = None
        if request.password:
            password = request.password
        else:
            generated = generate_temporary_password(self.password_length)
            password = generated

        identity = await self.identity_admin.create_identity(
            email=email,
            password=password,
            full_name=full_name,
        )

        profile_fields: Dict[str, Any] = {
            "full_name": full_name,
            "role": role.value,
            "status": ProfileStatus.ACTIVE.value,
        }
        for name in PROFILE_FIELDS:
            profile_fields[name] = getattr(request, name)

        try:
            profile = await self.identity_admin.upsert_profile(identity.id, identity.email, profile_fields)
        except MutationError as e:
            raise await self._compensate_profile_failure(identity, e) from e
        except Exception as e:
            failure = UpstreamFailure(f"Profile update failed: {e}")
            raise await self._compensate_profile_failure(identity, failure) from e

        logger.info(
            "Account provisioned",
            extra={"user_id": str(identity.id), "role": role.value, "password_generated": generated is not None},
        )
        return ProvisioningResult(identity=identity, profile=profile, generated_password=generated)

    def _validate(self, request: ProvisionAccountRequest) -> tuple[str, str, UserRole]:
        email = (request.email or "").strip()
        full_name = (request.full_name or "").strip()
        if not email or not full_name:
            raise InvalidInput("Email and full name are required")

        try:
            email = validate_email(email, check_deliverability=False).normalized.lower()
        except EmailNotValidError as e:
            raise InvalidInput(f"Invalid email address: {e}") from e

        if request.role:
            try:
                role = UserRole(request.role)
            except ValueError as e:
                allowed = ", ".join(r.value for r in UserRole)
                raise InvalidInput(f"Unknown role '{request.role}'. Allowed: {allowed}") from e
        else:
            role = UserRole.USER

        return email, full_name, role

    async def _compensate_profile_failure(self, identity: AuthIdentity, error: MutationError) -> MutationError:
        """Undo the identity step if allowed; return the error to report."""
        logger.error(
            "Profile step failed after identity creation",
            extra={"identity_id": str(identity.id), "error": error.message},
        )
        if self.rollback_on_profile_failure:
            try:
                removed = await self.identity_admin.delete_identity(identity.id)
            except Exception:
                logger.exception(
                    "Compensating identity deletion failed",
                    extra={"identity_id": str(identity.id)},
                )
                removed = False
            if removed:
                return UpstreamFailure(
                    f"Profile creation failed; identity rolled back: {error.message}",
                    {"identity_id": str(identity.id), "rolled_back": True},
                )

        return PartialFailure(
            f"Identity created but profile step failed: {error.message}",
            identity_id=identity.id,
            details={"email": identity.email, "rolled_back": False},
        )
