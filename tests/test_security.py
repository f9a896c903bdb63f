import logging
from datetime import timedelta

import pytest
from jose import jwt

from gateway.core.config import Settings, parse_duration, settings
from gateway.core.exceptions import NotAuthenticated
from gateway.core.security import create_access_token, decode_access_token


def test_token_embeds_profile(user):
    token = create_access_token(user)

    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert payload["sub"] == user.id
    assert payload["user"]["email"] == user.email
    assert payload["exp"] - payload["iat"] == 24 * 60 * 60
    assert decode_access_token(token) == user


def test_token_signed_with_other_secret_is_invalid(user):
    token = jwt.encode({"user": user.model_dump()}, "another-secret", algorithm="HS256")

    with pytest.raises(NotAuthenticated) as exc_info:
        decode_access_token(token)

    assert exc_info.value.message == "Invalid token"


def test_token_without_profile_fails_verification():
    token = jwt.encode({"sub": "1"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    with pytest.raises(NotAuthenticated) as exc_info:
        decode_access_token(token)

    assert exc_info.value.message == "Token verification failed"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("24h", timedelta(hours=24)),
        ("30m", timedelta(minutes=30)),
        ("7d", timedelta(days=7)),
        ("3600", timedelta(seconds=3600)),
    ],
)
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


def test_parse_duration_rejects_garbage():
    with pytest.raises(ValueError):
        parse_duration("one day")


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, JWT_SECRET="test-secret-key", **overrides)


def test_log_level_follows_debug_flag_by_default():
    assert _settings(DEBUG=False, LOG_LEVEL="").log_level == logging.INFO
    assert _settings(DEBUG=True, LOG_LEVEL="").log_level == logging.DEBUG


def test_explicit_log_settings_override_debug_flag():
    config = _settings(DEBUG=True, LOG_LEVEL="warning", LOG_FORMAT="JSON")

    assert config.log_level == logging.WARNING
    assert config.log_as_json is True


def test_unknown_log_level_is_rejected():
    with pytest.raises(ValueError):
        _settings(LOG_LEVEL="chatty")
