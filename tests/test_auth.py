"""
Unit Tests for Authentication

Password hashing, JWT helpers and the bearer-token user dependency.
"""

import pytest
from auth import get_password_hash, verify_password, create_access_token, decode_access_token


class TestPasswordHashing:
    """Tests for password hashing utilities."""
    
    def test_password_hash_creates_different_hashes(self):
        """Same password should create different hashes each time."""
        password = "test_password_123"
        hash1 = get_password_hash(password)
        hash2 = get_password_hash(password)
        
        assert hash1 != hash2
        assert hash1 != password
    
    def test_verify_password_correct(self):
        """Correct password should verify successfully."""
        password = "my_secret_password"
        hashed = get_password_hash(password)
        
        assert verify_password(password, hashed) is True
    
    def test_verify_password_incorrect(self):
        """Incorrect password should fail verification."""
        password = "correct_password"
        hashed = get_password_hash(password)
        
        assert verify_password("wrong_password", hashed) is False


class TestJWTTokens:
    """Tests for JWT token utilities."""
    
    def test_create_and_decode_token(self):
        """Token should encode and decode correctly."""
        data = {"sub": "test@example.com"}
        token = create_access_token(data)
        
        decoded = decode_access_token(token)
        
        assert decoded is not None
        assert decoded["sub"] == "test@example.com"
        assert "exp" in decoded
    
    def test_invalid_token_returns_none(self):
        """Invalid token should return None."""
        result = decode_access_token("invalid.token.here")
        
        assert result is None
    
    def test_empty_token_returns_none(self):
        """Empty token should return None."""
        result = decode_access_token("")
        
        assert result is None


class TestAuthEndpoints:
    """Registration, login and bearer resolution."""

    @pytest.mark.asyncio
    async def test_register_and_read_me(self, client, auth_headers):
        response = await client.get("/users/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "test@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_registration(self, client, auth_headers):
        response = await client.post("/register", json={"email": "test@example.com", "password": "x"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, auth_headers):
        response = await client.post("/login", data={"username": "test@example.com", "password": "nope"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_for_unknown_user(self, client):
        token = create_access_token({"sub": "ghost@example.com"})
        response = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    @pytest.mark.asyncio
    async def test_token_without_subject(self, client):
        token = create_access_token({"scope": "corrections"})
        response = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestRequestThrottling:
    """IP-level presets applied by slowapi."""

    def test_presets(self):
        from utils.rate_limit import RATE_LIMITS

        assert RATE_LIMITS["default"] == "200/minute"
        assert RATE_LIMITS["auth"] == "10/minute"

    @pytest.mark.asyncio
    async def test_login_throttled_after_auth_preset(self, client):
        from utils.rate_limit import limiter

        limiter.enabled = True
        limiter.reset()
        try:
            statuses = [
                (await client.post("/login", data={"username": "x@example.com", "password": "x"})).status_code
                for _ in range(11)
            ]
        finally:
            limiter.enabled = False
            limiter.reset()

        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429
