"""Cache of the current PSR snapshot per technician."""

import threading
from collections import deque

from safety_rating.rating.snapshot import PSRSnapshot

SNAPSHOT_HISTORY_SIZE = 10


class SnapshotCache:
    """Holds immutable snapshots; the latest one is the current rating.

    Snapshots are only ever replaced by snapshots of an equal or newer
    revision, so a slow recompute cannot overwrite a fresher result.
    """

    def __init__(self, history_size: int = SNAPSHOT_HISTORY_SIZE) -> None:
        self._snapshots: dict[str, deque[PSRSnapshot]] = {}
        self._history_size = history_size
        self._lock = threading.Lock()

    def get(self, technician_id: str) -> PSRSnapshot | None:
        """Latest snapshot for a technician, if any."""
        with self._lock:
            snapshots = self._snapshots.get(technician_id)
            return snapshots[-1] if snapshots else None

    def put(self, snapshot: PSRSnapshot) -> bool:
        """Store a snapshot unless a newer revision is already cached.

        Returns:
            True if the snapshot became the current one
        """
        with self._lock:
            snapshots = self._snapshots.setdefault(
                snapshot.technician_id, deque(maxlen=self._history_size)
            )
            if snapshots and snapshots[-1].revision > snapshot.revision:
                return False
            snapshots.append(snapshot)
            return True

    def history(self, technician_id: str) -> list[PSRSnapshot]:
        """Recent snapshots, oldest first."""
        with self._lock:
            return list(self._snapshots.get(technician_id, ()))

    def invalidate(self, technician_id: str) -> None:
        """Forget every snapshot of a technician."""
        with self._lock:
            self._snapshots.pop(technician_id, None)
