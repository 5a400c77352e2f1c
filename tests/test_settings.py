from __future__ import annotations

import datetime as dt

import pytest

from keylock import LockSettings


def test_defaults():
    settings = LockSettings()

    assert settings.redis_url == "redis://localhost:6379/0"
    assert settings.key_prefix == "lock:"
    assert settings.lease == dt.timedelta(seconds=10)
    assert settings.renew_interval_seconds is None


def test_from_file(tmp_path):
    path = tmp_path / "lock.yml"
    path.write_text(
        "redis_url: redis://cache:6380/2\n"
        "key_prefix: 'jobs:'\n"
        "lease_seconds: 30\n"
        "renew_interval_seconds: 10\n"
    )

    settings = LockSettings.from_file(path)

    assert settings.redis_url == "redis://cache:6380/2"
    assert settings.key_prefix == "jobs:"
    assert settings.lease_seconds == 30
    assert settings.renew_interval_seconds == 10


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")

    assert LockSettings.from_file(path) == LockSettings()


@pytest.mark.parametrize(
    "body",
    [
        "lease_seconds: 0\n",
        "lease_seconds: 5\nrenew_interval_seconds: 5\n",
        "socket_timeout_seconds: -1\n",
    ],
)
def test_invalid_file_is_rejected(tmp_path, body):
    path = tmp_path / "bad.yml"
    path.write_text(body)

    with pytest.raises(ValueError, match="Invalid lock settings"):
        LockSettings.from_file(path)


def test_from_env(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://env-host:6379/1")
    monkeypatch.setenv("KEYLOCK_KEY_PREFIX", "env:")
    monkeypatch.setenv("KEYLOCK_LEASE_SECONDS", "4.5")
    monkeypatch.setenv("KEYLOCK_RENEW_INTERVAL_SECONDS", "1.5")
    monkeypatch.delenv("KEYLOCK_SOCKET_TIMEOUT_SECONDS", raising=False)

    settings = LockSettings.from_env()

    assert settings.redis_url == "redis://env-host:6379/1"
    assert settings.key_prefix == "env:"
    assert settings.lease_seconds == 4.5
    assert settings.renew_interval_seconds == 1.5
    assert settings.socket_timeout_seconds == 5.0


def test_from_env_rejects_garbage(monkeypatch):
    monkeypatch.setenv("KEYLOCK_LEASE_SECONDS", "ten")

    with pytest.raises(ValueError, match="KEYLOCK_LEASE_SECONDS"):
        LockSettings.from_env()


def test_from_env_treats_blank_redis_url_as_unset(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "   ")
    monkeypatch.delenv("KEYLOCK_KEY_PREFIX", raising=False)
    monkeypatch.delenv("KEYLOCK_LEASE_SECONDS", raising=False)
    monkeypatch.delenv("KEYLOCK_RENEW_INTERVAL_SECONDS", raising=False)
    monkeypatch.delenv("KEYLOCK_SOCKET_TIMEOUT_SECONDS", raising=False)

    settings = LockSettings.from_env()

    assert settings.redis_url == "redis://localhost:6379/0"
