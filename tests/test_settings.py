import pytest
from pydantic import ValidationError

from app.config.settings import DEFAULT_JWT_SECRET, Settings


def test_production_refuses_the_default_jwt_secret():
    with pytest.raises(ValidationError, match="JWT_SECRET"):
        Settings(environment="production", jwt_secret=DEFAULT_JWT_SECRET)


def test_production_accepts_a_configured_secret():
    configured = Settings(environment="production", jwt_secret="s3cr3t-from-vault")
    assert configured.is_production
    assert configured.jwt_secret == "s3cr3t-from-vault"


def test_development_keeps_the_default_secret():
    assert Settings(environment="development", jwt_secret=DEFAULT_JWT_SECRET).jwt_secret == DEFAULT_JWT_SECRET
