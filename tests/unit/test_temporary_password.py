"""Unit tests for temporary password generation."""

import pytest

from opsconsole.kernel.identity.password import password_policy_violation
from opsconsole.kernel.identity.temporary_password import (
    DIGITS,
    LOWERCASE,
    PASSWORD_CHARSET,
    SYMBOLS,
    UPPERCASE,
    generate_temporary_password,
)


class TestGenerateTemporaryPassword:
    """Tests for generate_temporary_password."""

    def test_default_length_is_twelve(self):
        assert len(generate_temporary_password()) == 12

    def test_only_charset_characters(self):
        for _ in range(50):
            password = generate_temporary_password()
            assert set(password) <= set(PASSWORD_CHARSET)

    def test_every_character_class_present(self):
        for _ in range(50):
            password = generate_temporary_password()
            assert any(c in UPPERCASE for c in password)
            assert any(c in LOWERCASE for c in password)
            assert any(c in DIGITS for c in password)
            assert any(c in SYMBOLS for c in password)

    def test_always_satisfies_identity_policy(self):
        for _ in range(50):
            assert password_policy_violation(generate_temporary_password()) is None

    def test_results_differ(self):
        passwords = {generate_temporary_password() for _ in range(20)}

        assert len(passwords) == 20

    def test_custom_length(self):
        assert len(generate_temporary_password(20)) == 20

    def test_too_short_rejected(self):
        with pytest.raises(ValueError):
            generate_temporary_password(3)
