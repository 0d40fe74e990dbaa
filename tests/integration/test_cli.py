import json
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from business_settings.app_shell import cli
from business_settings.app_shell.config import AppConfig, validate_config
from business_settings.app_shell.context import ServiceContext
from business_settings.components.settings import UpdateBusinessSettingsRequest
from business_settings.domain.patch import SetTo


@pytest.fixture
def app_env(tmp_path, monkeypatch, rules_path, migrations_dir):
    """Point the CLI at a temporary data dir with the project's rules and migrations."""
    data_dir = tmp_path / "data"
    monkeypatch.setenv("BSS_DATA_DIR", str(data_dir))
    monkeypatch.setenv("BSS_RULES_PATH", str(rules_path))
    monkeypatch.setenv("BSS_MIGRATIONS_DIR", migrations_dir)
    return data_dir


class TestConfig:
    def test_from_env_defaults(self, monkeypatch):
        for name in ("BSS_DATA_DIR", "BSS_RULES_PATH", "BSS_MIGRATIONS_DIR"):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig.from_env()

        assert str(config.data_dir) == "data"
        assert config.rules_path.name == "rules.yaml"
        assert config.migrations_dir.name == "migrations"

    def test_from_env_overrides(self, app_env, rules):
        config = AppConfig.from_env()
        assert config.data_dir == app_env
        assert config.db_path(rules) == app_env / "settings.db"

    def test_validate_creates_data_dir(self, app_env):
        validate_config(AppConfig.from_env())
        assert app_env.is_dir()

    def test_validate_exits_on_missing_rules(self, app_env, tmp_path, monkeypatch):
        monkeypatch.setenv("BSS_RULES_PATH", str(tmp_path / "nope.yaml"))
        with pytest.raises(SystemExit) as exc_info:
            validate_config(AppConfig.from_env())
        assert exc_info.value.code == 1


class TestServiceContext:
    def test_create_wires_scheduler_from_rules(self, sqlite_db_path, rules, clock):
        ctx = ServiceContext.create(sqlite_db_path, rules, clock=clock)

        assert ctx.store.db_path == sqlite_db_path
        assert ctx.scheduler.is_running is False
        assert ctx.settings_service.get_business_settings(uuid4()).settings.version == 1


class TestCli:
    def test_migrate_then_up_to_date(self, app_env, capsys):
        cli.main(["migrate"])
        assert "Applied 2 migration(s)" in capsys.readouterr().out

        cli.main(["migrate"])
        assert "up to date" in capsys.readouterr().out

    def test_migrate_status_lists_pending(self, app_env, capsys):
        cli.main(["migrate", "--status"])
        out = capsys.readouterr().out
        assert "0001_business_settings.sql" in out
        assert "0002_business_rep_settings.sql" in out

        cli.main(["migrate"])
        capsys.readouterr()

        cli.main(["migrate", "--status"])
        assert "Pending migrations: none" in capsys.readouterr().out

    def test_show_business_prints_defaults(self, app_env, capsys):
        cli.main(["migrate"])
        capsys.readouterr()
        business_id = uuid4()

        cli.main(["show-business", str(business_id)])

        data = json.loads(capsys.readouterr().out)
        assert data["settings"]["business_id"] == str(business_id)
        assert data["dnd_state"] == "inactive"

    def test_show_rep_prints_defaults(self, app_env, capsys):
        cli.main(["migrate"])
        capsys.readouterr()

        cli.main(["show-rep", str(uuid4())])

        data = json.loads(capsys.readouterr().out)
        assert data["notification_preferences"] == {
            "email": True,
            "whatsapp": False,
            "in_app": True,
        }

    def test_expire_dnd_reports_summary(self, app_env, rules, capsys):
        cli.main(["migrate"])
        capsys.readouterr()

        # Seed a window that lapsed an hour ago
        business_id, parent = uuid4(), uuid4()
        past = datetime.now(UTC) - timedelta(hours=3)
        db_path = str(AppConfig.from_env().db_path(rules))
        ctx = ServiceContext.create(db_path, rules, clock=_FixedClock(past))
        ctx.directory.register_rep(business_id, parent)
        ctx.settings_service.update_business_settings(
            business_id,
            UpdateBusinessSettingsRequest(
                dnd_mode_enabled=SetTo(True), dnd_mode_duration_hours=SetTo(2)
            ),
            parent,
        )

        cli.main(["expire-dnd"])

        out = capsys.readouterr().out
        assert "Due: 1, expired: 1, failed: 0" in out

    def test_unknown_command_exits(self, app_env):
        with pytest.raises(SystemExit):
            cli.main(["frobnicate"])


class _FixedClock:
    def __init__(self, now):
        self._now = now

    def now_utc(self):
        return self._now
