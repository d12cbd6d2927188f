"""Exceptions raised by DOM Snapshot."""


class SnapshotError(Exception):
    """Base class for DOM Snapshot errors."""


class ResourceFetchFailure(SnapshotError):
    """An external resource could not be retrieved.

    Covers network errors, access denial and non-success responses.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
