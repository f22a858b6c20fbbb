"""Tests for configuration loading."""

import pydantic
import pytest

from audittrail.config import load_config
from audittrail.persistence import FallbackBackend, InMemoryBackend, get_backend


def test_load_config_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("AUDITTRAIL_STORAGE_PATH", raising=False)
    monkeypatch.delenv("AUDITTRAIL_STORAGE_BACKEND", raising=False)
    monkeypatch.delenv("AUDITTRAIL_APP_VERSION", raising=False)
    monkeypatch.setenv("AUDITTRAIL_CONFIG", str(tmp_path / "absent.yaml"))

    config = load_config()

    assert config.app_version == "0.1.0"
    assert config.default_page_size == 20
    assert config.storage.backend == "auto"
    assert config.storage.key == "auditTrail"
    assert config.users == []


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "audittrail.yaml"
    config_path.write_text(
        """
app_version: 2.3.1
default_page_size: 50
storage:
  backend: memory
  key: trail
users:
  - id: u-admin
    username: admin
    roles: [admin]
    password_hash: pbkdf2_sha256$1000$00$00
"""
    )
    monkeypatch.setenv("AUDITTRAIL_CONFIG", str(config_path))

    config = load_config()
    assert config.app_version == "2.3.1"
    assert config.default_page_size == 50
    assert config.storage.backend == "memory"
    assert config.storage.key == "trail"
    assert config.users[0].username == "admin"
    assert isinstance(get_backend(config=config), InMemoryBackend)


def test_env_overrides_file_values(tmp_path, monkeypatch):
    config_path = tmp_path / "audittrail.yaml"
    config_path.write_text("storage:\n  backend: memory\n")
    monkeypatch.setenv("AUDITTRAIL_STORAGE_BACKEND", "AUTO")
    monkeypatch.setenv("AUDITTRAIL_STORAGE_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("AUDITTRAIL_APP_VERSION", "9.9.9")

    config = load_config(str(config_path))

    assert config.storage.backend == "auto"
    assert config.storage.path == str(tmp_path / "env.db")
    assert config.app_version == "9.9.9"
    backend = get_backend(config=config)
    assert isinstance(backend, FallbackBackend)
    assert backend.name == "sqlite"


def test_invalid_backend_is_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("AUDITTRAIL_CONFIG", str(tmp_path / "absent.yaml"))
    monkeypatch.setenv("AUDITTRAIL_STORAGE_BACKEND", "redis")

    with pytest.raises(pydantic.ValidationError):
        load_config()
