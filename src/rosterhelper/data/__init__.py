"""Repository port, in-memory adapter and JSON snapshot loading."""

from rosterhelper.data.repository import (
    InMemoryRepository,
    ScheduleRepository,
    ScheduleSnapshot,
)
from rosterhelper.data.snapshot import (
    SnapshotError,
    dump_intents,
    load_snapshot,
    snapshot_from_dict,
)

__all__ = [
    "InMemoryRepository",
    "ScheduleRepository",
    "ScheduleSnapshot",
    "SnapshotError",
    "dump_intents",
    "load_snapshot",
    "snapshot_from_dict",
]
