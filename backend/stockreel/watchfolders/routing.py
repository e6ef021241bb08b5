"""
Folder-to-category routing.

A file dropped into <watch>/<folder>/... can be forced into a category by
the name of <folder>. Files directly in the watch root are never routed.
"""

from pathlib import PurePath
from typing import Mapping, Optional

from ..classification.models import VideoCategory, is_video_category


def relative_to_root(file_path: PurePath, root: PurePath) -> Optional[PurePath]:
    """Path relative to the watch root, or None if the file is outside it."""
    try:
        return PurePath(file_path).relative_to(root)
    except ValueError:
        return None


def derive_category_override(
    relative_path: Optional[PurePath],
    folder_map: Mapping[str, str],
) -> Optional[VideoCategory]:
    """
    Category for a file from its first subfolder.

    Lookup order: exact folder name in the map, lowercased folder name in
    the map, then the folder name itself when it is a category.

    Args:
        relative_path: File path relative to the watch root
        folder_map: Folder name → category value

    Returns:
        VideoCategory, or None when the file is at the root or unmapped
    """
    if relative_path is None or len(relative_path.parts) <= 1:
        return None

    folder = relative_path.parts[0]
    mapped = folder_map.get(folder) or folder_map.get(folder.lower())
    if mapped and is_video_category(mapped):
        return VideoCategory(mapped.lower())

    normalized = folder.lower()
    if is_video_category(normalized):
        return VideoCategory(normalized)

    return None
