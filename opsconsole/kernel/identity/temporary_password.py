"""
Temporary credential generation.

Used when an administrator provisions an account without choosing a
password. Characters are drawn from the OS CSPRNG via the secrets module.
"""

import secrets
import string

UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*"

PASSWORD_CHARSET = UPPERCASE + LOWERCASE + DIGITS + SYMBOLS

DEFAULT_PASSWORD_LENGTH = 12

# One character from each class is guaranteed so the result always meets
# the identity provider's complexity policy.
_REQUIRED_CLASSES = (UPPERCASE, LOWERCASE, DIGITS, SYMBOLS)

_rng = secrets.SystemRandom()


def generate_temporary_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """
    Generate a temporary password.

    Args:
        length: Number of characters (at least one per character class)

    Returns:
        A random password drawn only from PASSWORD_CHARSET
    """
    if length < len(_REQUIRED_CLASSES):
        raise ValueError(f"length must be at least {len(_REQUIRED_CLASSES)}")

    chars = [secrets.choice(charset) for charset in _REQUIRED_CLASSES]
    chars.extend(secrets.choice(PASSWORD_CHARSET) for _ in range(length - len(chars)))
    _rng.shuffle(chars)
    return "".join(chars)
