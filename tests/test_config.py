# tests/test_config.py

import pytest

from taskgen.config import TaskgenConfig
from taskgen.errors import ConfigError


def write_config(path, **values):
    lines = ["[DEFAULT]"] + [f"{key} = {value}" for key, value in values.items()]
    path.write_text("\n".join(lines) + "\n")
    return path


def test_defaults():
    config = TaskgenConfig()
    assert config.db_file == "/var/lib/taskgen-db.json"
    assert config.systemd_unit_dir == "/etc/systemd/system"
    assert config.db_format == "auto"
    assert config.systemctl == "systemctl"
    assert set(config.sources.values()) == {"default"}
    assert config.validate() == []


def test_config_file_default_section(tmp_path):
    path = write_config(tmp_path / "taskgen.conf", db_file="/srv/tasks.txt", systemd_unit_dir="/run/units")
    config = TaskgenConfig(str(path))
    assert config.db_file == "/srv/tasks.txt"
    assert config.systemd_unit_dir == "/run/units"
    assert config.sources["db_file"] == str(path)


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = write_config(tmp_path / "env.conf", db_format="text")
    monkeypatch.setenv("TASKGEN_CONFIG", str(path))
    assert TaskgenConfig().db_format == "text"


def test_priority_argument_over_env_over_file(tmp_path, monkeypatch):
    path = write_config(tmp_path / "taskgen.conf", db_file="/from/file", systemd_unit_dir="/file/units")
    monkeypatch.setenv("TASKGEN_DB_FILE", "/from/env")
    monkeypatch.setenv("TASKGEN_UNIT_DIR", "/env/units")

    config = TaskgenConfig(str(path), db_file="/from/arg")
    assert config.db_file == "/from/arg"
    assert config.systemd_unit_dir == "/env/units"
    assert config.sources["db_file"] == "argument"
    assert config.sources["systemd_unit_dir"] == "TASKGEN_UNIT_DIR"


def test_none_override_means_not_given(monkeypatch):
    monkeypatch.setenv("TASKGEN_SYSTEMCTL", "/bin/systemctl")
    assert TaskgenConfig(systemctl=None).systemctl == "/bin/systemctl"


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("TASKGEN_DB_FILE=/from/dotenv\n")
    assert TaskgenConfig().db_file == "/from/dotenv"


def test_dotenv_can_be_skipped(tmp_path):
    (tmp_path / ".env").write_text("TASKGEN_DB_FILE=/from/dotenv\n")
    assert TaskgenConfig(load_env=False).db_file == "/var/lib/taskgen-db.json"


def test_explicit_missing_config_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        TaskgenConfig(str(tmp_path / "nope.conf"))


def test_unparsable_config_file_is_an_error(tmp_path):
    path = tmp_path / "bad.conf"
    path.write_text("db_file = /no/section/header\n")
    with pytest.raises(ConfigError):
        TaskgenConfig(str(path))


def test_unknown_override_is_an_error():
    with pytest.raises(ConfigError):
        TaskgenConfig(database="/tmp/x")


def test_validate_reports_bad_format(tmp_path):
    config = TaskgenConfig(db_format="yaml")
    errors = config.validate()
    assert len(errors) == 1
    assert "db_format" in errors[0]


def test_paths_expand_user(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    config = TaskgenConfig(db_file="~/tasks.json", systemd_unit_dir="~/.config/systemd/user")
    assert config.db_path == tmp_path / "tasks.json"
    assert config.unit_dir == tmp_path / ".config" / "systemd" / "user"
    assert config.as_dict()["db_file"] == "~/tasks.json"
