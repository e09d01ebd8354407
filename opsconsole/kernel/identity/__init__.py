"""
Identity Core - authentication, identity administration and temporary credentials.
"""

from opsconsole.kernel.identity.password import (
    PasswordHasher,
    hash_password,
    password_policy_violation,
    verify_password,
)
from opsconsole.kernel.identity.jwt import AccessTokenPayload, IssuedToken, JWTManager
from opsconsole.kernel.identity.temporary_password import (
    PASSWORD_CHARSET,
    generate_temporary_password,
)
from opsconsole.kernel.identity.identity_service import IdentityAdmin, IdentityService

__all__ = [
    "PasswordHasher",
    "hash_password",
    "password_policy_violation",
    "verify_password",
    "AccessTokenPayload",
    "IssuedToken",
    "JWTManager",
    "PASSWORD_CHARSET",
    "generate_temporary_password",
    "IdentityAdmin",
    "IdentityService",
]
