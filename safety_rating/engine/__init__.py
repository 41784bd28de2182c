"""Record store, snapshot cache and the rating service."""

from safety_rating.engine.service import RatingService
from safety_rating.engine.snapshots import SnapshotCache
from safety_rating.engine.store import RecordStore, TechnicianHistory

__all__ = [
    "RatingService",
    "RecordStore",
    "TechnicianHistory",
    "SnapshotCache",
]
