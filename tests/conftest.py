# tests/conftest.py

import logging
import os
from pathlib import Path

import pytest

from taskgen import config as config_module
from taskgen.lifecycle import LifecycleDriver
from taskgen.orchestrator import TaskOrchestrator
from taskgen.store import JsonRecordStore

from .fakes import FakeRunner

TASKGEN_ENV_VARS = (
    "TASKGEN_CONFIG",
    "TASKGEN_DB_FILE",
    "TASKGEN_UNIT_DIR",
    "TASKGEN_DB_FORMAT",
    "TASKGEN_SYSTEMCTL",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """
    Keep the host's taskgen settings out of every test: no TASKGEN_* variables,
    no .env file, no /etc/taskgen config.

    os.environ is swapped for a copy so values loaded from a test's .env file
    do not outlive the test.
    """
    monkeypatch.setattr(os, "environ", os.environ.copy())
    for var in TASKGEN_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_FILE", str(tmp_path / "absent.conf"))
    monkeypatch.chdir(tmp_path)

    yield

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_taskgen", False):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture()
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def unit_dir(tmp_path: Path) -> Path:
    path = tmp_path / "units"
    path.mkdir()
    return path


@pytest.fixture()
def store(tmp_path: Path) -> JsonRecordStore:
    return JsonRecordStore(tmp_path / "taskgen-db.json")


@pytest.fixture()
def orchestrator(store, runner, unit_dir) -> TaskOrchestrator:
    return TaskOrchestrator(store, LifecycleDriver(runner), unit_dir)
