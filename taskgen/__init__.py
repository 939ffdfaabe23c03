"""
taskgen - Systemd Timer Manager

Generates systemd service/timer unit pairs from command-line input,
tracks the created tasks in a small local database and drives systemctl
to reload, enable, start, stop and disable them.

Main Components:
- TaskOrchestrator: create/delete/operate sequencing with per-step reports
- RecordStore: JSON or colon-delimited text task database
- LifecycleDriver: allow-listed systemctl verbs behind a CommandRunner
- Unit rendering: render_service, render_timer, render_script
"""

__version__ = "0.2.0"

from taskgen.errors import (
    TaskgenError,
    ConfigError,
    InvalidTaskError,
    UnsupportedVerbError,
    CommandLaunchError,
    StoreError,
    StoreWriteError,
    RecordFormatError,
)
from taskgen.models import TaskRecord, LoadResult, LoadStatus
from taskgen.store import RecordStore, JsonRecordStore, TextRecordStore, open_store
from taskgen.units import render_service, render_timer, render_script, unit_file_name
from taskgen.lifecycle import ALLOWED_VERBS, CommandRunner, SystemctlRunner, LifecycleDriver
from taskgen.orchestrator import TaskOrchestrator, OperationReport, StepResult, StepStatus
from taskgen.config import TaskgenConfig

__all__ = [
    # Errors
    "TaskgenError",
    "ConfigError",
    "InvalidTaskError",
    "UnsupportedVerbError",
    "CommandLaunchError",
    "StoreError",
    "StoreWriteError",
    "RecordFormatError",
    # Models
    "TaskRecord",
    "LoadResult",
    "LoadStatus",
    # Store
    "RecordStore",
    "JsonRecordStore",
    "TextRecordStore",
    "open_store",
    # Units
    "render_service",
    "render_timer",
    "render_script",
    "unit_file_name",
    # Lifecycle
    "ALLOWED_VERBS",
    "CommandRunner",
    "SystemctlRunner",
    "LifecycleDriver",
    # Orchestration
    "TaskOrchestrator",
    "OperationReport",
    "StepResult",
    "StepStatus",
    # Configuration
    "TaskgenConfig",
]
