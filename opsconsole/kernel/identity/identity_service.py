"""
Identity provider: credential validation, identity and profile administration.

Every operation opens its own session on the injected session factory and
commits before returning, so each call is one durable step.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from opsconsole.kernel.errors import (
    Conflict,
    IdentityProviderError,
    ServiceCredentialMissing,
    UpstreamFailure,
)
from opsconsole.kernel.identity.jwt import IssuedToken, JWTManager
from opsconsole.kernel.identity.password import (
    hash_password,
    password_policy_violation,
    verify_password,
)
from opsconsole.kernel.models.user import AuthIdentity, Profile, ProfileStatus
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.lower().strip()


class IdentityService:
    """
    Read side of the identity provider.

    Handles login and resolving bearer credentials back to identities.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        jwt_manager: Optional[JWTManager] = None,
    ):
        self.session_factory = session_factory
        self.jwt_manager = jwt_manager or JWTManager()

    async def authenticate(self, email: str, password: str) -> Optional[tuple[AuthIdentity, IssuedToken]]:
        """
        Authenticate an identity and issue an access token.

        Returns:
            Tuple of (AuthIdentity, IssuedToken) if successful, None otherwise
        """
        async with self.session_factory() as session:
            identity = await self._identity_by_email(session, email)
            if not identity or not verify_password(password, identity.password_hash):
                return None
            profile = await session.get(Profile, identity.id)

        if profile is None or profile.status_value != ProfileStatus.ACTIVE.value:
            return None

        token = self.jwt_manager.create_access_token(
            user_id=identity.id,
            email=identity.email,
            role=profile.role_value,
        )
        return identity, token

    async def resolve_credential(self, token: str) -> Optional[AuthIdentity]:
        """Validate a bearer token and load the identity it names."""
        payload = self.jwt_manager.verify_access_token(token)
        if not payload:
            return None
        try:
            identity_id = uuid.UUID(payload.sub)
        except ValueError:
            return None
        return await self.get_identity(identity_id)

    async def get_identity(self, identity_id: uuid.UUID) -> Optional[AuthIdentity]:
        """Get an identity by ID."""
        async with self.session_factory() as session:
            return await session.get(AuthIdentity, identity_id)

    async def get_profile(self, identity_id: uuid.UUID) -> Optional[Profile]:
        """Get the current profile row; always read fresh from the store."""
        async with self.session_factory() as session:
            query = select(Profile).where(Profile.id == identity_id).execution_options(
                populate_existing=True
            )
            result = await session.execute(query)
            return result.scalar_one_or_none()

    async def email_in_use(self, email: str) -> bool:
        """True if an identity or a profile already uses the email."""
        normalized = normalize_email(email)
        async with self.session_factory() as session:
            for column in (AuthIdentity.email, Profile.email):
                result = await session.execute(select(column).where(column == normalized).limit(1))
                if result.first() is not None:
                    return True
        return False

    @staticmethod
    async def _identity_by_email(session: AsyncSession, email: str) -> Optional[AuthIdentity]:
        query = select(AuthIdentity).where(AuthIdentity.email == normalize_email(email))
        result = await session.execute(query)
        return result.scalar_one_or_none()


class IdentityAdmin:
    """
    Privileged side of the identity provider.

    Requires the service credential; without it every call fails closed
    before touching the store.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        service_key: Optional[str],
    ):
        self.session_factory = session_factory
        self.service_key = service_key

    def ensure_configured(self) -> None:
        if not self.service_key:
            raise ServiceCredentialMissing(
                "Service credential is not configured; identity administration is disabled"
            )

    async def create_identity(
        self,
        email: str,
        password: str,
        full_name: str,
    ) -> AuthIdentity:
        """
        Create a confirmed authentication identity.

        Raises:
            ServiceCredentialMissing: No service credential configured
            IdentityProviderError: Password rejected by policy
            Conflict: Email already registered (unique index)
            UpstreamFailure: Any other store error
        """
        self.ensure_configured()

        violation = password_policy_violation(password)
        if violation:
            raise IdentityProviderError(violation)

        identity = AuthIdentity(
            email=normalize_email(email),
            password_hash=hash_password(password),
            email_confirmed_at=datetime.now(timezone.utc),
            user_metadata={"full_name": full_name.strip()},
        )
        async with self.session_factory() as session:
            session.add(identity)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise Conflict("User with this email already exists") from e
            except SQLAlchemyError as e:
                await session.rollback()
                raise UpstreamFailure(f"Identity creation failed: {e}") from e

        logger.info("Identity created", extra={"identity_id": str(identity.id)})
        return identity

    async def upsert_profile(
        self,
        identity_id: uuid.UUID,
        email: str,
        fields: Dict[str, Any],
    ) -> Profile:
        """
        Create or update the profile row for an identity.

        Args:
            identity_id: Identity the profile belongs to
            email: Identity email (profiles mirror it for lookups)
            fields: full_name, role, status, phone, company_id, department, position
        """
        self.ensure_configured()

        async with self.session_factory() as session:
            try:
                profile = await session.get(Profile, identity_id)
                if profile is None:
                    profile = Profile(id=identity_id, email=normalize_email(email))
                    session.add(profile)
                for key, value in fields.items():
                    setattr(profile, key, value)
                await session.commit()
                await session.refresh(profile)
            except SQLAlchemyError as e:
                await session.rollback()
                raise UpstreamFailure(f"Profile update failed: {e}") from e
            return profile

    async def delete_identity(self, identity_id: uuid.UUID) -> bool:
        """
        Delete an identity together with its profile, if one was written.

        Returns:
            True if a row was removed
        """
        self.ensure_configured()

        async with self.session_factory() as session:
            await session.execute(delete(Profile).where(Profile.id == identity_id))
            result = await session.execute(delete(AuthIdentity).where(AuthIdentity.id == identity_id))
            await session.commit()
            return result.rowcount == 1
