import io

from click.testing import CliRunner

from drive_api import cli as cli_module
from drive_api.config.settings import get_settings

ORPHAN_KEY = "alice/7d0c2b4e-1f3a-4c5d-8e9f-0a1b2c3d4e5f-orphan.txt"


def test_show_config(monkeypatch):
    monkeypatch.setenv("S3_BUCKET", "cli-bucket")
    get_settings.cache_clear()
    try:
        result = CliRunner().invoke(cli_module.cli, ["show-config"])
    finally:
        get_settings.cache_clear()

    assert result.exit_code == 0
    assert "S3_BUCKET: cli-bucket" in result.output


def test_sweep_orphans_command(object_storage, settings, monkeypatch):
    object_storage.store(ORPHAN_KEY, io.BytesIO(b"orphan"))
    monkeypatch.setattr(cli_module, "get_settings", lambda: settings)

    dry_run = CliRunner().invoke(cli_module.cli, ["sweep-orphans", "--dry-run", "--grace-seconds", "0"])
    assert dry_run.exit_code == 0
    assert f"Would delete: {ORPHAN_KEY}" in dry_run.output
    assert ORPHAN_KEY in object_storage.list_keys()

    result = CliRunner().invoke(cli_module.cli, ["sweep-orphans", "--grace-seconds", "0"])
    assert result.exit_code == 0
    assert "Deleted 1 orphaned object(s)" in result.output
    assert object_storage.list_keys() == []


def test_sweep_orphans_command_uses_configured_grace_period(object_storage, settings, monkeypatch):
    object_storage.store(ORPHAN_KEY, io.BytesIO(b"orphan"))
    settings.orphan_grace_seconds = 3600
    monkeypatch.setattr(cli_module, "get_settings", lambda: settings)

    result = CliRunner().invoke(cli_module.cli, ["sweep-orphans"])

    assert result.exit_code == 0
    assert "Deleted 0 orphaned object(s)" in result.output
    assert ORPHAN_KEY in object_storage.list_keys()
