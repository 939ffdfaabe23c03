"""
Persistent record store for managed tasks.

The whole database is a single file that is read in full and rewritten in
full on every change. Two on-disk forms are supported:

- JSON: a list of objects with name/command/frequency/timer_options
- text: one ``name:command:frequency:timer_options`` line per record

There is no locking; concurrent invocations against the same file can
lose updates.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from taskgen.errors import ConfigError, RecordFormatError, StoreWriteError
from taskgen.models import LoadResult, LoadStatus, TaskRecord

logger = logging.getLogger(__name__)

DB_FORMATS = ("auto", "json", "text")


class RecordStore:
    """
    Base class for file-backed task record stores.

    Subclasses implement ``_parse`` and ``_serialize``; loading, saving and
    the append/remove helpers are shared.
    """

    format_name = "base"

    def __init__(self, path: Union[str, Path]):
        """
        Initialize record store.

        Args:
            path: Backing database file. It does not need to exist yet.
        """
        self.path = Path(path).expanduser()

    def _parse(self, data: str) -> LoadResult:
        raise NotImplementedError

    def _serialize(self, records: List[TaskRecord]) -> str:
        raise NotImplementedError

    def load(self) -> LoadResult:
        """
        Read every record from the backing file.

        A missing file is an empty database. Unreadable content never raises;
        it is reported through ``LoadResult.status``.
        """
        try:
            data = self.path.read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            logger.debug(f"No database at {self.path}, starting empty")
            return LoadResult(status=LoadStatus.MISSING)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read database {self.path}: {e}")
            return LoadResult(status=LoadStatus.RECOVERED, reason=str(e))

        result = self._parse(data)
        if result.recovered:
            logger.warning(f"Recovered database {self.path}: {result.reason}")
        return result

    def records(self) -> List[TaskRecord]:
        return self.load().records

    def get(self, name: str) -> Optional[TaskRecord]:
        """Get the record for a task name, if any."""
        for record in self.records():
            if record.name == name:
                return record
        return None

    def save(self, records: Iterable[TaskRecord]):
        """
        Overwrite the backing file with the given records, in order.

        Raises:
            StoreWriteError: If the file cannot be written.
        """
        records = list(records)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self._serialize(records), encoding="utf-8", errors="surrogateescape")
        except (OSError, UnicodeError) as e:
            logger.error(f"Failed to write database {self.path}: {e}")
            raise StoreWriteError(f"Failed to write db file {self.path}: {e}") from e
        logger.debug(f"Saved {len(records)} record(s) to {self.path}")

    def append(self, record: TaskRecord) -> bool:
        """
        Add a record, replacing any existing record with the same name.

        The replaced record keeps its position in the file.

        Returns:
            True if an existing record was updated, False if appended
        """
        records = self.records()
        updated = False
        kept = []
        for existing in records:
            if existing.name != record.name:
                kept.append(existing)
            elif not updated:
                kept.append(record)
                updated = True

        if not updated:
            kept.append(record)

        self.save(kept)
        logger.info(f"{'Updated' if updated else 'Added'} record: {record.name}")
        return updated

    def remove(self, name: str) -> int:
        """
        Remove every record whose name equals ``name`` exactly.

        Returns:
            Number of records removed
        """
        records = self.records()
        kept = [r for r in records if r.name != name]
        removed = len(records) - len(kept)

        self.save(kept)
        if removed:
            logger.info(f"Removed record: {name}")
        else:
            logger.info(f"No record named {name} in {self.path}")
        return removed

    def __repr__(self):
        return f"{type(self).__name__}(path={self.path})"


class JsonRecordStore(RecordStore):
    """
    Store records as one JSON document.

    A document that fails to parse, is not a list, or holds any invalid
    record loads as an empty, recovered database.
    """

    format_name = "json"

    def _parse(self, data: str) -> LoadResult:
        if not data.strip():
            return LoadResult()

        try:
            document = json.loads(data)
        except json.JSONDecodeError as e:
            return LoadResult(status=LoadStatus.RECOVERED, reason=f"invalid JSON: {e}")

        if not isinstance(document, list):
            return LoadResult(
                status=LoadStatus.RECOVERED,
                reason=f"expected a list of records, got {type(document).__name__}",
            )

        try:
            records = [TaskRecord.from_dict(item) for item in document]
        except RecordFormatError as e:
            return LoadResult(status=LoadStatus.RECOVERED, reason=f"invalid record: {e}")

        return LoadResult(records=records)

    def _serialize(self, records: List[TaskRecord]) -> str:
        return json.dumps([r.to_dict() for r in records], indent=2) + "\n"


class TextRecordStore(RecordStore):
    """
    Store records as colon-delimited lines.

    Malformed lines are dropped individually; the rest still load.
    """

    format_name = "text"

    def _parse(self, data: str) -> LoadResult:
        records = []
        dropped = 0
        for lineno, line in enumerate(data.split("\n"), start=1):
            if not line.strip():
                continue
            try:
                records.append(TaskRecord.from_line(line))
            except RecordFormatError as e:
                dropped += 1
                logger.debug(f"{self.path}:{lineno}: {e}")

        if dropped:
            return LoadResult(
                records=records,
                status=LoadStatus.RECOVERED,
                reason=f"dropped {dropped} malformed line(s)",
            )
        return LoadResult(records=records)

    def _serialize(self, records: List[TaskRecord]) -> str:
        return "".join(r.to_line() + "\n" for r in records)


def open_store(path: Union[str, Path], fmt: str = "auto") -> RecordStore:
    """
    Create the record store for a database file.

    Args:
        path: Database file path
        fmt: 'json', 'text', or 'auto' (JSON for *.json files, text otherwise)

    Raises:
        ConfigError: If the format is unknown
    """
    if fmt not in DB_FORMATS:
        raise ConfigError(f"Unknown database format '{fmt}' (expected one of {', '.join(DB_FORMATS)})")

    if fmt == "auto":
        fmt = "json" if Path(path).suffix.lower() == ".json" else "text"

    if fmt == "json":
        return JsonRecordStore(path)
    return TextRecordStore(path)
