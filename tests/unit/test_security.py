"""Unit tests for password hashing and token handling."""

from datetime import timedelta

import pytest
from jose import JWTError, jwt

from todo_api.core.security import (
    create_access_token,
    decode_token,
    get_user_id_from_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    """Tests for argon2 password hashing."""

    def test_hash_is_not_plaintext(self):
        """The stored hash never equals the password."""
        hashed = hash_password("password123")

        assert hashed != "password123"
        assert hashed.startswith("$argon2")

    def test_verify_correct_password(self):
        hashed = hash_password("password123")

        assert verify_password("password123", hashed) is True

    def test_verify_wrong_password(self):
        hashed = hash_password("password123")

        assert verify_password("password124", hashed) is False

    def test_same_password_gets_different_salts(self):
        assert hash_password("password123") != hash_password("password123")


class TestAccessTokens:
    """Tests for JWT creation and decoding."""

    def test_round_trip_user_id(self):
        token = create_access_token(42)

        assert get_user_id_from_token(token) == 42

    def test_subject_is_stored_as_string(self):
        payload = decode_token(create_access_token(42))

        assert payload["sub"] == "42"
        assert "exp" in payload

    def test_extra_claims_are_included(self):
        payload = decode_token(create_access_token(999, type="test", username="testuser"))

        assert payload["type"] == "test"
        assert payload["username"] == "testuser"

    def test_expired_token_is_rejected(self):
        token = create_access_token(1, expires_delta=timedelta(seconds=-1))

        with pytest.raises(JWTError):
            decode_token(token)

    def test_token_signed_with_another_secret_is_rejected(self):
        token = jwt.encode({"sub": "1"}, "some-other-secret", algorithm="HS256")

        with pytest.raises(JWTError):
            decode_token(token)

    def test_non_numeric_subject_is_rejected(self):
        token = create_access_token("not-a-number")

        with pytest.raises(JWTError):
            get_user_id_from_token(token)
