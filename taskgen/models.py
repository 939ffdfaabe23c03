"""
Data models for managed systemd tasks.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List

from taskgen.errors import RecordFormatError

FIELD_NAMES = ("name", "command", "frequency", "timer_options")
FIELD_SEPARATOR = ":"
ESCAPE_CHAR = "\\"


def _escape_field(value: str) -> str:
    return (
        value.replace(ESCAPE_CHAR, ESCAPE_CHAR * 2)
        .replace(FIELD_SEPARATOR, ESCAPE_CHAR + FIELD_SEPARATOR)
        .replace("\n", ESCAPE_CHAR + "n")
    )


def _split_fields(line: str) -> List[str]:
    """Split a record line on unescaped separators, unescaping as it goes."""
    fields = []
    current = []
    chars = iter(line)
    for char in chars:
        if char == ESCAPE_CHAR:
            escaped = next(chars, None)
            if escaped is None:
                raise RecordFormatError(f"Dangling escape at end of line: {line!r}")
            current.append("\n" if escaped == "n" else escaped)
        elif char == FIELD_SEPARATOR:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


@dataclass
class TaskRecord:
    """
    One managed task: a service/timer unit pair sharing ``name``.

    ``command`` holds either the single command, several commands joined
    with `` && ``, or the path of the generated wrapper script.
    """
    name: str
    command: str
    frequency: str = ""  # OnCalendar expression, empty for none
    timer_options: str = ""  # comma-separated raw [Timer] directives

    @property
    def service_unit(self) -> str:
        return f"{self.name}.service"

    @property
    def timer_unit(self) -> str:
        return f"{self.name}.timer"

    def to_dict(self) -> Dict[str, str]:
        """Structured form used by the JSON store."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> 'TaskRecord':
        """
        Build a record from its structured form.

        Raises:
            RecordFormatError: If data is not a mapping or any required
                field is missing or not a string.
        """
        if not isinstance(data, dict):
            raise RecordFormatError(f"Expected an object, got {type(data).__name__}")

        values = {}
        for key in FIELD_NAMES:
            if key not in data:
                raise RecordFormatError(f"Missing field '{key}'")
            if not isinstance(data[key], str):
                raise RecordFormatError(f"Field '{key}' must be a string")
            values[key] = data[key]
        return cls(**values)

    def to_line(self) -> str:
        """Delimited-text form: name:command:frequency:timer_options."""
        return FIELD_SEPARATOR.join(
            _escape_field(getattr(self, key)) for key in FIELD_NAMES
        )

    @classmethod
    def from_line(cls, line: str) -> 'TaskRecord':
        """
        Parse a record from its delimited-text form.

        Only unescaped separators split fields, so a name is always compared
        as a whole field and never by line prefix.

        Raises:
            RecordFormatError: If the line does not hold exactly four fields.
        """
        fields = _split_fields(line.rstrip("\r\n"))
        if len(fields) != len(FIELD_NAMES):
            raise RecordFormatError(
                f"Expected {len(FIELD_NAMES)} fields, got {len(fields)}: {line!r}"
            )
        return cls(*fields)

    def __str__(self) -> str:
        # Listing format, unescaped like the plain-text database of old
        return FIELD_SEPARATOR.join(getattr(self, key) for key in FIELD_NAMES)


class LoadStatus(Enum):
    """Outcome of reading the record store."""
    OK = "ok"
    MISSING = "missing"  # no backing file yet, empty database
    RECOVERED = "recovered"  # content unreadable, some or all of it ignored


@dataclass
class LoadResult:
    """Records read from the store plus how the read went."""
    records: List[TaskRecord] = field(default_factory=list)
    status: LoadStatus = LoadStatus.OK
    reason: str = ""

    @property
    def recovered(self) -> bool:
        return self.status is LoadStatus.RECOVERED

    def names(self) -> List[str]:
        return [r.name for r in self.records]
