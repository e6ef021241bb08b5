"""
Watch folder error hierarchy.

All errors are non-fatal to the running watcher. They indicate operation
failure; discovery keeps going.
"""


class WatchFolderError(Exception):
    """Base exception for watch folder failures."""

    pass


class WatchFolderNotFoundError(WatchFolderError):
    """Watch folder path does not exist or is not a directory."""

    pass


class TagsManifestError(WatchFolderError):
    """Tags manifest exists but cannot be read."""

    pass
