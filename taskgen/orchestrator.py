"""
Create, delete and operate on systemd-timer backed tasks.

Each operation is an ordered sequence of named steps. The outcome of every
step is recorded in an OperationReport. The first fatal failure aborts the
sequence and the remaining steps are marked skipped. Nothing is rolled back,
so a report with an abort point describes exactly what was left behind:

- create aborted after writing units: unit files exist, timer not started,
  no record
- delete aborted at daemon-reload: unit files removed, record still stored
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from taskgen.errors import CommandLaunchError, InvalidTaskError, StoreWriteError
from taskgen.lifecycle import LifecycleDriver
from taskgen.models import LoadResult, TaskRecord
from taskgen.store import RecordStore
from taskgen.units import render_script, render_service, render_timer, unit_file_name

logger = logging.getLogger(__name__)

DEFAULT_UNIT_DIR = "/etc/systemd/system"
COMMAND_JOINER = " && "
SCRIPT_MODE = 0o755


class StepStatus(Enum):
    OK = "ok"
    FAILED = "failed"  # non-zero exit status or filesystem error
    LAUNCH_ERROR = "launch-error"  # systemctl could not be started
    SKIPPED = "skipped"  # not attempted after an earlier abort


@dataclass
class StepResult:
    step: str
    status: StepStatus
    detail: str = ""
    fatal: bool = True

    @property
    def failed(self) -> bool:
        return self.status in (StepStatus.FAILED, StepStatus.LAUNCH_ERROR)


@dataclass
class OperationReport:
    """Per-step outcome of one task operation."""
    operation: str
    name: str
    steps: List[StepResult] = field(default_factory=list)
    record: Optional[TaskRecord] = None

    @property
    def aborted_at(self) -> Optional[str]:
        """Name of the step that aborted the operation, if any."""
        for result in self.steps:
            if result.failed and result.fatal:
                return result.step
        return None

    @property
    def ok(self) -> bool:
        return self.aborted_at is None

    @property
    def warnings(self) -> List[StepResult]:
        return [r for r in self.steps if r.failed and not r.fatal]

    def status_of(self, step: str) -> Optional[StepStatus]:
        for result in self.steps:
            if result.step == step:
                return result.status
        return None

    def completed_steps(self) -> List[str]:
        return [r.step for r in self.steps if r.status is StepStatus.OK]

    def summary(self) -> str:
        if self.ok:
            return f"{self.operation} {self.name}: completed"
        failed = next(r for r in self.steps if r.step == self.aborted_at)
        done = ", ".join(self.completed_steps()) or "none"
        return (
            f"{self.operation} {self.name}: aborted at step {failed.step} "
            f"({failed.detail}); completed steps: {done}"
        )


# (step name, action, fatal). An action returns False or raises to fail.
Step = Tuple[str, Callable[[], Optional[bool]], bool]


class TaskOrchestrator:
    """
    Sequences unit rendering, file writes, systemctl calls and record
    store updates for a task.
    """

    def __init__(
        self,
        store: RecordStore,
        driver: Optional[LifecycleDriver] = None,
        unit_dir: Union[str, Path] = DEFAULT_UNIT_DIR,
    ):
        """
        Initialize task orchestrator.

        Args:
            store: Record store holding the created tasks
            driver: Lifecycle driver (defaults to one running real systemctl)
            unit_dir: Directory systemd loads unit files from
        """
        self.store = store
        self.driver = driver if driver is not None else LifecycleDriver()
        self.unit_dir = Path(unit_dir)

    def unit_path(self, name: str, kind: str) -> Path:
        return self.unit_dir / unit_file_name(name, kind)

    # ---- step execution ----

    def _run_steps(self, report: OperationReport, steps: Sequence[Step]) -> OperationReport:
        for step_name, action, fatal in steps:
            if not report.ok:
                report.steps.append(StepResult(step_name, StepStatus.SKIPPED, fatal=fatal))
                continue

            try:
                succeeded = action()
            except CommandLaunchError as e:
                result = StepResult(step_name, StepStatus.LAUNCH_ERROR, str(e), fatal)
            except (OSError, UnicodeError, StoreWriteError) as e:
                result = StepResult(step_name, StepStatus.FAILED, str(e), fatal)
            else:
                if succeeded is False:
                    result = StepResult(
                        step_name, StepStatus.FAILED, "systemctl exited with non-zero status", fatal
                    )
                else:
                    result = StepResult(step_name, StepStatus.OK, fatal=fatal)

            report.steps.append(result)
            if result.failed and fatal:
                logger.error(f"{report.operation} {report.name} aborted at step {step_name}: {result.detail}")
            elif result.failed:
                logger.warning(f"{report.operation} {report.name}: step {step_name} failed: {result.detail}")
            else:
                logger.debug(f"{report.operation} {report.name}: step {step_name} ok")

        return report

    def _write_file(self, path: Path, content: str, mode: Optional[int] = None):
        logger.debug(f"Writing {path}:\n{content}")
        path.write_text(content, encoding="utf-8", errors="surrogateescape")
        if mode is not None:
            os.chmod(path, mode)
        logger.info(f"Wrote {path}")

    def _remove_file(self, path: Path):
        path.unlink()
        logger.info(f"Removed {path}")

    def _save_record(self, record: TaskRecord):
        self.store.append(record)

    def _forget_record(self, name: str):
        self.store.remove(name)

    # ---- operations ----

    def create(
        self,
        name: str,
        commands: Sequence[str],
        frequency: str = "",
        timer_options: str = "",
        script_path: Optional[Union[str, Path]] = None,
    ) -> OperationReport:
        """
        Create and start a task's service/timer pair.

        Args:
            name: Task and unit name
            commands: Commands the service runs, in order
            frequency: OnCalendar expression (may be empty)
            timer_options: Comma-separated extra [Timer] directives
            script_path: If given, write the commands to this shell script
                and run the script instead

        Returns:
            Report of every step; the record is only saved when all unit
            and systemctl steps succeeded

        Raises:
            InvalidTaskError: If no command was given (nothing is touched)
        """
        commands = list(commands)
        if not commands:
            raise InvalidTaskError("At least one command is required")

        timer_unit = unit_file_name(name, "timer")
        steps: List[Step] = []

        if script_path:
            script = Path(script_path).expanduser().resolve()
            service_body = render_service(name, str(script))
            stored_command = str(script)
            steps.append((
                "write-script",
                lambda: self._write_file(script, render_script(commands), SCRIPT_MODE),
                True,
            ))
        else:
            service_body = render_service(name, commands)
            stored_command = COMMAND_JOINER.join(commands)

        timer_body = render_timer(name, frequency, timer_options)
        record = TaskRecord(
            name=name,
            command=stored_command,
            frequency=frequency,
            timer_options=timer_options,
        )

        steps.extend([
            ("write-service", lambda: self._write_file(self.unit_path(name, "service"), service_body), True),
            ("write-timer", lambda: self._write_file(self.unit_path(name, "timer"), timer_body), True),
            ("daemon-reload", self.driver.daemon_reload, True),
            ("enable", lambda: self.driver.enable(timer_unit), True),
            ("start", lambda: self.driver.start(timer_unit), True),
            ("save-record", lambda: self._save_record(record), True),
        ])

        logger.info(f"Creating task {name}")
        report = self._run_steps(OperationReport("create", name), steps)
        if report.ok:
            report.record = record
            logger.info(f"Service and timer for {name} created and started")
        return report

    def delete(self, name: str) -> OperationReport:
        """
        Stop, disable and remove a task's units, then forget the record.

        Unit file removal is best effort: a failure there is a warning and
        the remaining steps still run.
        """
        timer_unit = unit_file_name(name, "timer")
        steps: List[Step] = [
            ("stop", lambda: self.driver.stop(timer_unit), True),
            ("disable", lambda: self.driver.disable(timer_unit), True),
            ("remove-service", lambda: self._remove_file(self.unit_path(name, "service")), False),
            ("remove-timer", lambda: self._remove_file(self.unit_path(name, "timer")), False),
            ("daemon-reload", self.driver.daemon_reload, True),
            ("remove-record", lambda: self._forget_record(name), True),
        ]

        logger.info(f"Deleting task {name}")
        report = self._run_steps(OperationReport("delete", name), steps)
        if report.ok:
            logger.info(f"Service and timer for {name} deleted")
        return report

    def operate(self, name: str, verb: str, unit: str = "timer") -> OperationReport:
        """
        Run a single allow-listed systemctl verb against one of the task's units.

        Raises:
            UnsupportedVerbError: If verb is not allow-listed (nothing runs)
            InvalidTaskError: If unit is not 'service' or 'timer'
        """
        self.driver.check_verb(verb)
        try:
            unit_name = unit_file_name(name, unit)
        except ValueError as e:
            raise InvalidTaskError(str(e)) from e

        report = self._run_steps(
            OperationReport(verb, name),
            [(verb, lambda: self.driver.run(verb, unit_name), True)],
        )
        if report.ok:
            logger.info(f"{' '.join(self.driver.build_argv(verb, unit_name))} executed")
        return report

    def list_tasks(self) -> LoadResult:
        """Read every stored task. Never modifies anything."""
        return self.store.load()
