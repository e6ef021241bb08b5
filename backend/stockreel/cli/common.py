"""
Shared CLI helpers.
"""

import logging
import os
from typing import Dict, Optional

from ..classification.models import is_video_category

LOG_LEVEL_ENV = "STOCKREEL_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CLIError(Exception):
    """Raised for invalid command-line input. Maps to exit code 1."""
    pass


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once; level from argument, env, or INFO."""
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    numeric = getattr(logging, name, None)
    if not isinstance(numeric, int):
        raise CLIError(f"Unknown log level: {name}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)


def parse_folder_map(value: str) -> Dict[str, str]:
    """
    Parse "folder:category,folder2:category2".

    Raises:
        CLIError: If an entry is malformed or names an unknown category
    """
    mapping: Dict[str, str] = {}
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        folder, sep, category = entry.partition(":")
        folder, category = folder.strip(), category.strip().lower()
        if not sep or not folder or not category:
            raise CLIError(f"Invalid --map entry '{entry}' (expected folder:category)")
        if not is_video_category(category):
            raise CLIError(f"Invalid --map entry '{entry}': unknown category '{category}'")
        mapping[folder] = category
    return mapping


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
