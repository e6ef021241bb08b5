"""
Hashtag derivation for discovered files.

Three sources, merged in this order and de-duplicated:
1. Subfolder names below the category folder
   (watch/beauty/#summer sale/clip.mp4 → #summer, #sale)
2. The tags manifest, a CSV of `pattern,tag1;tag2` lines where pattern
   may use `*` and `#` starts a comment line
3. The file name: `#tag` / `＃tag` tokens and bracketed lists such as
   "clip [spring, outdoor].mp4"

Every returned tag starts with '#'.
"""

import logging
import re
from pathlib import Path, PurePath
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from .errors import TagsManifestError

logger = logging.getLogger(__name__)


_HASHTAG = re.compile(r"[#＃]([\w\-]+)")
_BRACKETED = re.compile(r"[\[\(\{]([^\]\)\}]*)[\]\)\}]")
_BRACKET_SPLIT = re.compile(r"[ ,;／、・|]+")
_SEGMENT_SPLIT = re.compile(r"[ ,;]+")
_MANIFEST_TAG_SPLIT = re.compile(r"[;\s]+")


def normalize_hashtag(token: str) -> Optional[str]:
    """'＃tag' → '#tag', 'tag' → '#tag'; None for blank input."""
    token = token.strip()
    if not token:
        return None
    if token.startswith("＃"):
        token = "#" + token[1:]
    return token if token.startswith("#") else f"#{token}"


def merge_tags(*groups: Iterable[str]) -> List[str]:
    """Concatenate tag groups, dropping duplicates and keeping first order."""
    merged: List[str] = []
    for group in groups:
        for tag in group:
            if tag and tag not in merged:
                merged.append(tag)
    return merged


class TagRule(BaseModel):
    """One manifest line."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pattern: str
    tags: List[str]

    def matches(self, file_name: str) -> bool:
        """Case-insensitive full match; '*' matches any run of characters."""
        regex = ".*".join(re.escape(part) for part in self.pattern.split("*"))
        return re.fullmatch(regex, file_name, re.IGNORECASE) is not None


def parse_tags_manifest(text: str) -> List[TagRule]:
    """
    Parse manifest text.

    Blank lines, '#' comment lines and lines without a pattern or tags are
    skipped. Only the first comma separates pattern from tags.
    """
    rules: List[TagRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        pattern, _, tags_raw = line.partition(",")
        pattern = pattern.strip()
        tags = [t for t in _MANIFEST_TAG_SPLIT.split(tags_raw.strip()) if t]
        if pattern and tags:
            rules.append(TagRule(pattern=pattern, tags=tags))
    return rules


def load_tags_manifest(path: Path) -> List[TagRule]:
    """
    Load a manifest file.

    A missing manifest is not an error and yields no rules.

    Raises:
        TagsManifestError: If the file exists but cannot be read or decoded
    """
    path = Path(path)
    if not path.is_file():
        logger.debug(f"[Tags] No manifest at {path}")
        return []

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TagsManifestError(f"Cannot read tags manifest {path}: {e}") from e

    rules = parse_tags_manifest(text)
    logger.info(f"[Tags] Loaded {len(rules)} rule(s) from {path}")
    return rules


def manifest_tags(rules: Iterable[TagRule], file_name: str) -> List[str]:
    """Tags from every rule whose pattern matches the file name."""
    tags: List[str] = []
    for rule in rules:
        if rule.matches(file_name):
            tags.extend(filter(None, (normalize_hashtag(t) for t in rule.tags)))
    return merge_tags(tags)


def filename_tags(file_name: str) -> List[str]:
    """Hashtags and bracketed tag lists embedded in a file name."""
    base = PurePath(file_name).stem
    tags: List[str] = [f"#{m.group(1)}" for m in _HASHTAG.finditer(base)]

    for match in _BRACKETED.finditer(base):
        for token in _BRACKET_SPLIT.split(match.group(1)):
            tag = normalize_hashtag(token)
            if tag:
                tags.append(tag)

    return merge_tags(tags)


def subfolder_tags(relative_path: PurePath) -> List[str]:
    """
    Hashtags from directory segments after the first (category) folder.

    The file name itself is not a tag source here; see filename_tags().
    """
    directories = relative_path.parts[:-1]
    tags: List[str] = []
    for segment in directories[1:]:
        for token in _SEGMENT_SPLIT.split(segment):
            tag = normalize_hashtag(token)
            if tag:
                tags.append(tag)
    return merge_tags(tags)
