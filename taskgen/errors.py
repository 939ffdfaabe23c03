"""
Exception hierarchy for taskgen.

Store deserialization problems are not raised to callers; they surface as
a recovered LoadResult instead (see taskgen.models.LoadStatus).
"""


class TaskgenError(Exception):
    """Base class for all taskgen errors."""
    pass


class ConfigError(TaskgenError):
    """Raised when the configuration file or a configured value is invalid."""
    pass


class InvalidTaskError(TaskgenError, ValueError):
    """Raised when a task request is rejected before any side effect."""
    pass


class UnsupportedVerbError(TaskgenError, ValueError):
    """Raised when a systemctl verb is not in the allow-list."""

    def __init__(self, verb: str):
        super().__init__(f"Unsupported systemctl operation: {verb}")
        self.verb = verb


class CommandLaunchError(TaskgenError):
    """Raised when the external process-control command cannot be started."""

    def __init__(self, argv, cause: Exception):
        super().__init__(f"Failed to launch {' '.join(argv)}: {cause}")
        self.argv = list(argv)
        self.cause = cause


class StoreError(TaskgenError):
    """Base class for record store errors."""
    pass


class StoreWriteError(StoreError):
    """Raised when the record store cannot be written."""
    pass


class RecordFormatError(StoreError, ValueError):
    """Raised when a serialized task record cannot be parsed."""
    pass
