import json

import pytest
from typer.testing import CliRunner

from audittrail.cli import app
from audittrail.config import load_config
from audittrail.security import hash_password
from audittrail.store import create_audit_store

runner = CliRunner()


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    config_path = tmp_path / "audittrail.yaml"
    config_path.write_text(
        f"""
storage:
  backend: sqlite
  path: {tmp_path / "audit.db"}
users:
  - id: u-admin
    username: admin
    display_name: Administrator
    roles: [admin]
    password_hash: "{hash_password("admin123", iterations=1000)}"
"""
    )
    monkeypatch.setenv("AUDITTRAIL_CONFIG", str(config_path))
    monkeypatch.delenv("AUDITTRAIL_STORAGE_PATH", raising=False)
    monkeypatch.delenv("AUDITTRAIL_STORAGE_BACKEND", raising=False)
    return config_path


def _store():
    return create_audit_store(load_config())


def test_log_command_records_entry(config_env):
    result = runner.invoke(
        app, ["log", "u1", "update", "settings", "-d", "theme=dark", "-d", "lang=en"]
    )

    assert result.exit_code == 0, result.stdout
    entry = _store().get_logs().items[0]
    assert entry.id in result.stdout
    assert entry.details == {"theme": "dark", "lang": "en"}


def test_log_command_rejects_delete_without_reason(config_env):
    result = runner.invoke(app, ["log", "u1", "DELETE", "report"])

    assert result.exit_code == 1
    assert "reason is required" in result.stdout
    assert _store().count() == 0


def test_log_command_rejects_malformed_detail(config_env):
    result = runner.invoke(app, ["log", "u1", "READ", "report", "-d", "novalue"])

    assert result.exit_code == 1
    assert "expected key=value" in result.stdout


def test_list_command_filters_and_paginates(config_env):
    store = _store()
    store.log_action("u1", "READ", "converter")
    store.log_action("u2", "DELETE", "report", reason="duplicate upload")

    result = runner.invoke(app, ["list", "--action", "DELETE"])

    assert result.exit_code == 0, result.stdout
    assert "duplicate upload" in result.stdout
    assert "converter" not in result.stdout
    assert "Page 1/1 (1 entries)" in result.stdout


def test_list_command_empty(config_env):
    result = runner.invoke(app, ["list"])

    assert result.exit_code == 0
    assert "No audit entries found" in result.stdout


def test_export_command_writes_file(config_env, tmp_path):
    _store().log_action("u1", "READ", "converter")
    target = tmp_path / "out.json"

    result = runner.invoke(app, ["export", "--format", "json", "--output", str(target)])

    assert result.exit_code == 0, result.stdout
    assert len(json.loads(target.read_text())) == 1


def test_export_command_stdout_csv(config_env):
    _store().log_action("u1", "READ", "converter")

    result = runner.invoke(app, ["export", "-f", "csv", "-o", "-"])

    assert result.exit_code == 0
    assert result.stdout.startswith("id,timestamp,userId")


def test_export_command_rejects_format(config_env):
    result = runner.invoke(app, ["export", "--format", "xml"])

    assert result.exit_code == 1
    assert "Unsupported export format: xml" in result.stdout


def test_clear_command_signs_and_logs(config_env):
    store = _store()
    store.log_action("u1", "READ", "converter")
    store.log_action("u1", "READ", "converter")

    result = runner.invoke(
        app,
        ["clear", "--username", "admin", "--reason", "cleanup"],
        input="admin123\n",
    )

    assert result.exit_code == 0, result.stdout
    assert "Cleared 2 entries" in result.stdout
    items = _store().get_logs().items
    assert len(items) == 1
    assert items[0].action_type.value == "DELETE"
    assert items[0].details["eSign"]["signerId"] == "u-admin"


def test_clear_command_wrong_password(config_env):
    _store().log_action("u1", "READ", "converter")

    result = runner.invoke(
        app,
        ["clear", "--username", "admin", "--reason", "cleanup"],
        input="nope\n",
    )

    assert result.exit_code == 1
    assert "Verification failed: Invalid credentials" in result.stdout
    entries = _store().get_logs().items
    assert len(entries) == 2
    assert entries[1].entity == "esign"


def test_hash_password_command(config_env):
    result = runner.invoke(app, ["hash-password"], input="pw\npw\n")

    assert result.exit_code == 0
    assert "pbkdf2_sha256$" in result.stdout
