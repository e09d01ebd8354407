"""Unit tests for access token issuance and verification."""

import uuid
from datetime import timedelta

from jose import jwt

from opsconsole.kernel.identity.jwt import JWTManager


class TestJWTManager:
    """Tests for JWTManager."""

    def setup_method(self):
        self.manager = JWTManager(
            secret_key="test-secret-key-for-testing-only",
            algorithm="HS256",
            access_token_expire_minutes=30,
        )

    def test_round_trip(self):
        user_id = uuid.uuid4()
        issued = self.manager.create_access_token(user_id, "ops@example.com", role="admin")

        payload = self.manager.verify_access_token(issued.access_token)

        assert payload is not None
        assert payload.sub == str(user_id)
        assert payload.email == "ops@example.com"
        assert issued.token_type == "bearer"
        assert issued.expires_in == 30 * 60

    def test_expired_token_rejected(self):
        issued = self.manager.create_access_token(
            uuid.uuid4(), "ops@example.com", expires_delta=timedelta(seconds=-5)
        )

        assert self.manager.verify_access_token(issued.access_token) is None

    def test_wrong_secret_rejected(self):
        other = JWTManager(secret_key="another-secret-key-entirely", algorithm="HS256")
        issued = other.create_access_token(uuid.uuid4(), "ops@example.com")

        assert self.manager.verify_access_token(issued.access_token) is None

    def test_non_access_token_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "email": "ops@example.com", "type": "refresh"},
            "test-secret-key-for-testing-only",
            algorithm="HS256",
        )

        assert self.manager.verify_access_token(token) is None

    def test_garbage_rejected(self):
        assert self.manager.verify_access_token("not.a.token") is None
