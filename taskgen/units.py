"""
Render systemd unit files for a task.

Everything here is pure string building. Directives passed in are not
validated; systemd reports anything it cannot parse when it loads the unit.
"""

from typing import Sequence, Union

UNIT_KINDS = ("service", "timer")

ExecSpec = Union[str, Sequence[str]]


def unit_file_name(name: str, kind: str) -> str:
    """Return the unit file name for a task, e.g. ``backup.timer``."""
    if kind not in UNIT_KINDS:
        raise ValueError(f"Unknown unit type '{kind}' (expected service or timer)")
    return f"{name}.{kind}"


def render_service(name: str, exec_spec: ExecSpec) -> str:
    """
    Render a oneshot service unit.

    Args:
        name: Task name, used in the description
        exec_spec: One command, or a sequence of commands each getting its
            own ExecStart= line

    Returns:
        Unit file text
    """
    commands = [exec_spec] if isinstance(exec_spec, str) else list(exec_spec)
    exec_lines = "".join(f"ExecStart={command}\n" for command in commands)

    return f"""[Unit]
Description=Service for {name}

[Service]
Type=oneshot
{exec_lines}"""


def render_timer(name: str, frequency: str = "", timer_options: str = "") -> str:
    """
    Render the timer unit that triggers the task's service.

    OnCalendar= is only emitted for a non-empty frequency. Each
    comma-separated entry of timer_options becomes one line, verbatim.
    Persistent=true is always added, even if timer_options sets it too.
    """
    lines = []
    if frequency:
        lines.append(f"OnCalendar={frequency}")
    if timer_options:
        lines.extend(timer_options.split(","))
    lines.append("Persistent=true")
    timer_lines = "".join(f"{line}\n" for line in lines)

    return f"""[Unit]
Description=Timer for {name}

[Timer]
{timer_lines}
[Install]
WantedBy=timers.target
"""


def render_script(commands: Sequence[str]) -> str:
    """Render a /bin/sh wrapper running the commands one per line."""
    return "#!/bin/sh\n" + "".join(f"{command}\n" for command in commands)
