"""
Filesystem scanner for the watch root.

Recursively scans directories for supported video files. Used once at
watcher start so files already sitting in the watch root are ingested.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


SUPPORTED_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".webm"})


def is_supported(path: Path) -> bool:
    """True when the file extension is a supported video container."""
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


class FileScanner:
    """
    Filesystem scanner for watch folder ingestion.

    Scans directories for video files matching the supported extensions.
    Skips hidden files, directories, symlinks and excluded subtrees.
    """

    def __init__(
        self,
        skip_hidden: bool = True,
        follow_symlinks: bool = False,
        exclude: Optional[Iterable[Path]] = None,
    ):
        """
        Initialize file scanner.

        Args:
            skip_hidden: Skip files/dirs starting with '.' (default: True)
            follow_symlinks: Follow symbolic links (default: False for safety)
            exclude: Directories whose contents are never returned
                (processed/failed/temp when they live under the root)
        """
        self.skip_hidden = skip_hidden
        self.follow_symlinks = follow_symlinks
        self.exclude = [Path(p).resolve() for p in (exclude or [])]

    def scan(self, root: Path) -> List[Path]:
        """
        Scan a directory tree for video files.

        Returns:
            Absolute paths of candidate files (not yet stability-checked),
            sorted by path
        """
        root = Path(root)
        if not root.is_dir():
            return []

        candidates = []
        try:
            for item in root.rglob("*"):
                if self.should_skip(item, root):
                    continue
                if not item.is_file():
                    continue
                if is_supported(item):
                    candidates.append(item.resolve())
                else:
                    logger.debug(f"[Scanner] Ignoring unsupported file: {item}")
        except OSError as e:
            # Directory became inaccessible during scan; keep what we have
            logger.warning(f"[Scanner] Scan of {root} interrupted: {e}")

        return sorted(candidates)

    def should_skip(self, path: Path, root: Path) -> bool:
        """Symlink, hidden-entry and exclusion policy for one path."""
        if path.is_symlink() and not self.follow_symlinks:
            return True

        if self.skip_hidden:
            try:
                parts = path.relative_to(root).parts
            except ValueError:
                parts = (path.name,)
            if any(part.startswith(".") for part in parts):
                return True

        resolved = path.resolve()
        return any(resolved == excluded or excluded in resolved.parents for excluded in self.exclude)
