"""DOM Snapshot - capture documents as static, self-contained HTML."""

from .capture import capture, capture_sync
from .errors import ResourceFetchFailure, SnapshotError

__all__ = ["ResourceFetchFailure", "SnapshotError", "capture", "capture_sync"]
