# tests/test_units.py

import pytest

from taskgen.units import render_script, render_service, render_timer, unit_file_name


def test_render_service_single_command():
    assert render_service("job", "/bin/echo hi") == (
        "[Unit]\n"
        "Description=Service for job\n"
        "\n"
        "[Service]\n"
        "Type=oneshot\n"
        "ExecStart=/bin/echo hi\n"
    )


def test_render_service_one_exec_start_per_command():
    body = render_service("job", ["/bin/true", "/bin/echo done"])
    exec_lines = [line for line in body.splitlines() if line.startswith("ExecStart=")]
    assert exec_lines == ["ExecStart=/bin/true", "ExecStart=/bin/echo done"]


def test_render_timer_without_frequency_or_options_has_only_footer():
    body = render_timer("job", "", "")
    assert "OnCalendar=" not in body
    assert body == (
        "[Unit]\n"
        "Description=Timer for job\n"
        "\n"
        "[Timer]\n"
        "Persistent=true\n"
        "\n"
        "[Install]\n"
        "WantedBy=timers.target\n"
    )


def test_render_timer_orders_directives():
    body = render_timer("job", "daily", "RandomizedDelaySec=30,AccuracySec=1s")
    lines = body.splitlines()
    start = lines.index("[Timer]") + 1
    assert lines[start:] == [
        "OnCalendar=daily",
        "RandomizedDelaySec=30",
        "AccuracySec=1s",
        "Persistent=true",
        "",
        "[Install]",
        "WantedBy=timers.target",
    ]


def test_render_timer_keeps_duplicate_persistent():
    body = render_timer("job", "hourly", "Persistent=false")
    assert body.count("Persistent=") == 2
    assert body.index("Persistent=false") < body.index("Persistent=true")


def test_rendering_is_deterministic():
    args = ("job", "Mon *-*-* 03:00:00", "OnBootSec=10min")
    assert render_timer(*args) == render_timer(*args)
    assert render_service("job", ["a", "b"]) == render_service("job", ["a", "b"])


def test_render_script():
    assert render_script(["cd /srv", "make backup"]) == "#!/bin/sh\ncd /srv\nmake backup\n"


def test_unit_file_name():
    assert unit_file_name("job", "service") == "job.service"
    assert unit_file_name("job", "timer") == "job.timer"
    with pytest.raises(ValueError):
        unit_file_name("job", "socket")
