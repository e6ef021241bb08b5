"""
Watch folder discovery.

DirectoryWatcher observes the watch root, waits for writes to settle and
enqueues supported video files with folder-derived category overrides and
hashtags.
"""

from .errors import WatchFolderError, WatchFolderNotFoundError, TagsManifestError
from .models import FileStabilityCheck, DiscoveredFile
from .stability import FileStabilityChecker
from .scanner import FileScanner, SUPPORTED_EXTENSIONS, is_supported
from .routing import derive_category_override, relative_to_root
from .tags import (
    TagRule,
    parse_tags_manifest,
    load_tags_manifest,
    manifest_tags,
    filename_tags,
    subfolder_tags,
    normalize_hashtag,
    merge_tags,
)
from .watcher import DirectoryWatcher

__all__ = [
    # Errors
    "WatchFolderError",
    "WatchFolderNotFoundError",
    "TagsManifestError",
    # Models
    "FileStabilityCheck",
    "DiscoveredFile",
    # Discovery
    "FileStabilityChecker",
    "FileScanner",
    "SUPPORTED_EXTENSIONS",
    "is_supported",
    "derive_category_override",
    "relative_to_root",
    # Tags
    "TagRule",
    "parse_tags_manifest",
    "load_tags_manifest",
    "manifest_tags",
    "filename_tags",
    "subfolder_tags",
    "normalize_hashtag",
    "merge_tags",
    # Watcher
    "DirectoryWatcher",
]
