"""
Tests for bcrypt password hashing.
"""

import pytest

from auth.password import PasswordHasher, hash_password, verify_password


class TestPasswordHelpers:
    def test_round_trip(self):
        hashed = hash_password("secret1", rounds=4)
        assert verify_password("secret1", hashed)

    def test_wrong_password(self):
        hashed = hash_password("secret1", rounds=4)
        assert not verify_password("secret2", hashed)

    def test_hash_is_salted(self):
        assert hash_password("secret1", rounds=4) != hash_password("secret1", rounds=4)

    def test_default_cost_factor_is_10(self):
        hashed = hash_password("secret1")
        assert hashed.startswith("$2b$10$")
        assert "secret1" not in hashed

    def test_malformed_hash_is_not_an_error(self):
        assert verify_password("secret1", "not-a-bcrypt-hash") is False


class TestPasswordHasher:
    @pytest.mark.asyncio
    async def test_async_round_trip(self):
        hasher = PasswordHasher(rounds=4)
        hashed = await hasher.hash("hunter2")
        assert hashed.startswith("$2b$04$")
        assert await hasher.verify("hunter2", hashed)
        assert not await hasher.verify("hunter3", hashed)

    @pytest.mark.asyncio
    async def test_decoy_never_matches(self):
        hasher = PasswordHasher(rounds=4)
        assert await hasher.verify_decoy("anything") is False
