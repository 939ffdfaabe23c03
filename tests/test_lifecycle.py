# tests/test_lifecycle.py

import sys

import pytest

from taskgen.errors import CommandLaunchError, UnsupportedVerbError
from taskgen.lifecycle import ALLOWED_VERBS, LifecycleDriver, SystemctlRunner

from .fakes import FakeRunner


def test_run_passes_verb_and_unit(runner):
    driver = LifecycleDriver(runner)
    assert driver.run("enable", "job.timer") is True
    assert runner.calls == [["systemctl", "enable", "job.timer"]]


def test_daemon_reload_takes_no_unit(runner):
    driver = LifecycleDriver(runner)
    assert driver.daemon_reload() is True
    assert driver.run("daemon-reload", "job.timer") is True
    assert runner.calls == [["systemctl", "daemon-reload"], ["systemctl", "daemon-reload"]]


def test_nonzero_exit_is_failure():
    runner = FakeRunner(exit_codes={"start": 5})
    driver = LifecycleDriver(runner)
    assert driver.start("job.timer") is False
    assert runner.verbs == ["start"]


def test_launch_failure_propagates():
    driver = LifecycleDriver(FakeRunner(launch_failures={"stop"}))
    with pytest.raises(CommandLaunchError):
        driver.stop("job.timer")


@pytest.mark.parametrize("verb", ["create", "delete", "kill", "mask", "", "START"])
def test_unknown_verb_is_rejected_without_running(runner, verb):
    driver = LifecycleDriver(runner)
    with pytest.raises(UnsupportedVerbError):
        driver.run(verb, "job.timer")
    assert runner.calls == []


def test_allow_list():
    assert set(ALLOWED_VERBS) == {
        "start", "stop", "restart", "reload", "enable", "disable", "status", "daemon-reload",
    }


def test_custom_executable(runner):
    LifecycleDriver(runner, executable="/usr/bin/systemctl").disable("job.timer")
    assert runner.calls == [["/usr/bin/systemctl", "disable", "job.timer"]]


def test_systemctl_runner_reports_exit_status():
    runner = SystemctlRunner()
    assert runner.run([sys.executable, "-c", "raise SystemExit(3)"]) == 3
    assert runner.run([sys.executable, "-c", "pass"]) == 0


def test_systemctl_runner_launch_error(tmp_path):
    with pytest.raises(CommandLaunchError) as excinfo:
        SystemctlRunner().run([str(tmp_path / "no-such-systemctl"), "daemon-reload"])
    assert isinstance(excinfo.value.cause, OSError)
