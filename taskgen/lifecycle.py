"""
Drive systemd unit lifecycle through systemctl.

Process execution sits behind the CommandRunner interface so the lifecycle
sequencing can run against an in-memory runner when no service manager is
present.
"""

import logging
import subprocess
from typing import List, Optional, Protocol

from taskgen.errors import CommandLaunchError, UnsupportedVerbError

logger = logging.getLogger(__name__)

ALLOWED_VERBS = (
    "start",
    "stop",
    "restart",
    "reload",
    "enable",
    "disable",
    "status",
    "daemon-reload",
)

# Verbs that act on the manager itself rather than on a unit
MANAGER_VERBS = ("daemon-reload",)


class CommandRunner(Protocol):
    """Runs an external command and reports its exit status."""

    def run(self, argv: List[str]) -> int:
        """
        Run argv to completion.

        Returns:
            Process exit status

        Raises:
            CommandLaunchError: If the process could not be started at all
        """
        ...


class SystemctlRunner:
    """
    Runs commands with subprocess, blocking until they exit.

    Output is not captured, so ``systemctl status`` prints straight to the
    terminal. There is no timeout.
    """

    def run(self, argv: List[str]) -> int:
        logger.debug(f"Executing command: {' '.join(argv)}")
        try:
            completed = subprocess.run(argv, check=False)
        except OSError as e:
            logger.error(f"Failed to launch {argv[0]}: {e}")
            raise CommandLaunchError(argv, e) from e
        logger.debug(f"{argv[0]} exited with status {completed.returncode}")
        return completed.returncode


class LifecycleDriver:
    """
    Applies allow-listed systemctl verbs to units.

    Every call maps to exactly one ``systemctl <verb> [unit]`` invocation.
    """

    def __init__(self, runner: Optional[CommandRunner] = None, executable: str = "systemctl"):
        """
        Initialize lifecycle driver.

        Args:
            runner: Command runner (defaults to SystemctlRunner)
            executable: Process-control command to invoke
        """
        self.runner = runner if runner is not None else SystemctlRunner()
        self.executable = executable

    @staticmethod
    def check_verb(verb: str):
        """Raise UnsupportedVerbError unless verb is allow-listed."""
        if verb not in ALLOWED_VERBS:
            raise UnsupportedVerbError(verb)

    def build_argv(self, verb: str, unit_name: Optional[str] = None) -> List[str]:
        self.check_verb(verb)
        argv = [self.executable, verb]
        if unit_name and verb not in MANAGER_VERBS:
            argv.append(unit_name)
        return argv

    def run(self, verb: str, unit_name: Optional[str] = None) -> bool:
        """
        Run one systemctl verb.

        Args:
            verb: One of ALLOWED_VERBS
            unit_name: Fully qualified unit, e.g. ``backup.timer``; ignored
                for daemon-reload

        Returns:
            True if systemctl exited with status 0

        Raises:
            UnsupportedVerbError: If verb is not allow-listed (nothing runs)
            CommandLaunchError: If systemctl could not be started
        """
        argv = self.build_argv(verb, unit_name)
        target = f" {unit_name}" if len(argv) > 2 else ""
        logger.info(f"systemctl {verb}{target}")

        returncode = self.runner.run(argv)
        if returncode != 0:
            logger.error(f"systemctl {verb}{target} failed with exit code {returncode}")
            return False
        return True

    def daemon_reload(self) -> bool:
        return self.run("daemon-reload")

    def enable(self, unit_name: str) -> bool:
        return self.run("enable", unit_name)

    def start(self, unit_name: str) -> bool:
        return self.run("start", unit_name)

    def stop(self, unit_name: str) -> bool:
        return self.run("stop", unit_name)

    def disable(self, unit_name: str) -> bool:
        return self.run("disable", unit_name)
