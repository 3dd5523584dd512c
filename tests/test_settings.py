"""
Tests for configuration loading; the token secret is mandatory.
"""

import pydantic
import pytest

from config.settings import Settings
from main import create_app


class TestSettings:
    def test_missing_secret_fails(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None)

    def test_blank_secret_fails(self):
        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, jwt_secret="   ")

    def test_secret_from_environment(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "from-env")
        monkeypatch.setenv("BCRYPT_ROUNDS", "12")
        settings = Settings(_env_file=None)
        assert settings.jwt_secret == "from-env"
        assert settings.bcrypt_rounds == 12

    def test_defaults(self):
        settings = Settings(_env_file=None, jwt_secret="s")
        assert settings.jwt_expiry_seconds == 86400
        assert settings.bcrypt_rounds == 10
        assert settings.starting_balance == 100000
        assert settings.cookie_name == "token"
        assert settings.login_field == "username"

    def test_app_refuses_to_start_without_secret(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        monkeypatch.chdir("/")
        with pytest.raises(pydantic.ValidationError):
            create_app()
