"""
FastAPI dependencies for credentials, services and the mutation pipeline.

Every service receives the session factory (the backend client) from
get_session_factory, so tests can point the whole API at another store by
overriding that single dependency.
"""

from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from opsconsole.config import Settings, get_settings
from opsconsole.database import async_session_maker
from opsconsole.engines.mutation.account_provisioning import AccountProvisioningEngine
from opsconsole.engines.mutation.delivery_reversal import DeliveryNoteReversalEngine
from opsconsole.engines.mutation.pipeline import MutationPipeline
from opsconsole.kernel.audit.audit_query import AuditLogQuery
from opsconsole.kernel.audit.audit_recorder import AuditRecorder
from opsconsole.kernel.identity.identity_service import IdentityAdmin, IdentityService
from opsconsole.kernel.permissions.authorization import (
    AuthorizationChecker,
    MutationKind,
    Principal,
)


# Security scheme; missing headers are reported by the checker, not here
security = HTTPBearer(auto_error=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency that provides the backend client."""
    return async_session_maker


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_credential(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Optional[str]:
    """Raw bearer token, or None if the header is missing."""
    return credentials.credentials if credentials else None


Credential = Annotated[Optional[str], Depends(get_credential)]


def get_identity_service(session_factory: SessionFactory) -> IdentityService:
    return IdentityService(session_factory)


def get_identity_admin(session_factory: SessionFactory, settings: AppSettings) -> IdentityAdmin:
    return IdentityAdmin(session_factory, settings.service_role_key)


def get_authorization_checker(
    identity_service: Annotated[IdentityService, Depends(get_identity_service)],
) -> AuthorizationChecker:
    return AuthorizationChecker(identity_service)


def get_audit_recorder(session_factory: SessionFactory) -> AuditRecorder:
    return AuditRecorder(session_factory)


def get_audit_query(session_factory: SessionFactory, settings: AppSettings) -> AuditLogQuery:
    return AuditLogQuery(session_factory, window=settings.audit_log_window)


def get_mutation_pipeline(
    session_factory: SessionFactory,
    settings: AppSettings,
    identity_service: Annotated[IdentityService, Depends(get_identity_service)],
    identity_admin: Annotated[IdentityAdmin, Depends(get_identity_admin)],
    checker: Annotated[AuthorizationChecker, Depends(get_authorization_checker)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
) -> MutationPipeline:
    """Assemble the pipeline for one request."""
    return MutationPipeline(
        checker=checker,
        recorder=recorder,
        reversal_engine=DeliveryNoteReversalEngine(
            session_factory,
            timeout_seconds=settings.mutation_timeout_seconds,
        ),
        provisioning_engine=AccountProvisioningEngine(
            identity_service,
            identity_admin,
            rollback_on_profile_failure=settings.provisioning_rollback_on_profile_failure,
            password_length=settings.temporary_password_length,
        ),
    )


Pipeline = Annotated[MutationPipeline, Depends(get_mutation_pipeline)]
Checker = Annotated[AuthorizationChecker, Depends(get_authorization_checker)]


async def require_audit_reader(credential: Credential, checker: Checker) -> Principal:
    """Require a caller allowed to read the audit log."""
    return await checker.require(credential, MutationKind.READ_AUDIT_LOG)


AuditReader = Annotated[Principal, Depends(require_audit_reader)]

