"""
Unit Tests for Security Module
Tests for: password hashing, password strength, JWT tokens
"""
import re
from datetime import timedelta

import pytest
from jose import jwt

from app.core.config import settings
from app.core.exceptions import InvalidTokenError, WeakPasswordError
from app.core.security import (
    verify_password,
    get_password_hash,
    validate_password_strength,
    generate_random_password,
    create_access_token,
    create_refresh_token,
    create_token_pair,
    decode_token,
)


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_is_not_plaintext(self):
        hashed = get_password_hash("testpassword123")

        assert hashed != "testpassword123"
        assert hashed.startswith("$2")

    def test_hash_different_each_time(self):
        """Bcrypt salts every hash"""
        assert get_password_hash("testpassword123") != get_password_hash("testpassword123")

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")
        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")
        assert verify_password("wrongpassword1", hashed) is False

    @pytest.mark.parametrize("shared_secret", ["123", "password123", ""])
    def test_shared_demo_passwords_do_not_verify(self, shared_secret):
        hashed = get_password_hash("a-real-Secret-99")
        assert verify_password(shared_secret, hashed) is False

    def test_verify_against_non_bcrypt_value(self):
        """Plaintext stored in the hash column never matches"""
        assert verify_password("123", "123") is False

    def test_hash_long_password_truncated(self):
        long_password = "a1" * 60
        hashed = get_password_hash(long_password)
        assert verify_password(long_password, hashed) is True

    def test_hash_unicode_password(self):
        password = "pässwörd123🔐"
        assert verify_password(password, get_password_hash(password)) is True


class TestPasswordStrength:

    @pytest.mark.parametrize("password", ["short1", "onlyletters", "1234567890"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(WeakPasswordError):
            validate_password_strength(password)

    def test_strong_password_accepted(self):
        validate_password_strength("Founder2024pass")

    def test_generated_password_is_strong(self):
        for _ in range(20):
            password = generate_random_password()
            assert len(password) == 16
            assert re.search(r"[A-Za-z]", password)
            assert re.search(r"\d", password)
            validate_password_strength(password)


class TestTokens:

    def test_access_token_round_trip(self):
        token = create_access_token({"sub": "user-1", "role": "founder"})
        payload = decode_token(token, expected_type="access")

        assert payload["sub"] == "user-1"
        assert payload["role"] == "founder"
        assert payload["type"] == "access"

    def test_refresh_token_rejected_as_access(self):
        token = create_refresh_token({"sub": "user-1"})
        with pytest.raises(InvalidTokenError):
            decode_token(token, expected_type="access")

    def test_expired_token(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-5))
        with pytest.raises(InvalidTokenError) as exc_info:
            decode_token(token)
        assert "expired" in exc_info.value.message.lower()

    def test_wrong_signature(self):
        token = jwt.encode({"sub": "user-1", "type": "access"}, "another-secret", algorithm=settings.JWT_ALGORITHM)
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_token_without_subject(self):
        token = create_access_token({"role": "founder"})
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_token_pair(self):
        tokens = create_token_pair("user-9", "investor")

        assert tokens["token_type"] == "bearer"
        assert decode_token(tokens["access_token"], expected_type="access")["role"] == "investor"
        assert decode_token(tokens["refresh_token"], expected_type="refresh")["sub"] == "user-9"
