"""
Unit Tests for Security Module
Tests for: password hashing, JWT tokens, HMAC verification
"""
import hashlib
import hmac
from datetime import timedelta

import pytest
from jose import jwt

from riskify.core.config import settings
from riskify.core.exceptions import AuthenticationError
from riskify.core.security import (
    create_access_token,
    decode_token,
    generate_check_in_token,
    get_password_hash,
    sha256_hex,
    verify_hmac_sha256,
    verify_password,
)


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert verify_password(password, hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_long_password_truncated_to_bcrypt_limit(self):
        """Bytes past 72 are ignored by bcrypt"""
        password = "a" * 80
        hashed = get_password_hash(password)

        assert verify_password("a" * 72 + "different", hashed) is True


class TestAccessTokens:
    """Test JWT creation and decoding"""

    def test_token_round_trip(self):
        token = create_access_token({"sub": "user-1", "role": "user"})
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_token_signed_with_other_key_rejected(self):
        token = jwt.encode({"sub": "user-1", "type": "access"}, "some-other-key", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(AuthenticationError):
            decode_token(token)


class TestHashing:
    """Test HMAC and digest helpers"""

    def test_verify_hmac_sha256(self):
        message = b"order_123|pay_456"
        signature = hmac.new(b"secret", message, hashlib.sha256).hexdigest()

        assert verify_hmac_sha256("secret", message, signature) is True
        assert verify_hmac_sha256("secret", message, "0" * 64) is False
        assert verify_hmac_sha256("secret", message, None) is False
        assert verify_hmac_sha256("", message, signature) is False

    def test_verify_hmac_sha256_non_ascii_signature(self):
        assert verify_hmac_sha256("secret", b"payload", "caf\u00e9") is False

    def test_sha256_hex(self):
        assert sha256_hex(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_check_in_tokens_are_unique(self):
        tokens = {generate_check_in_token() for _ in range(20)}

        assert len(tokens) == 20
