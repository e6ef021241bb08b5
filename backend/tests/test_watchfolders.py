"""
Tests for watch folder discovery.

These tests verify:
1. Stability detection (time-based, with an injected clock)
2. Scanning: supported containers only, hidden and excluded subtrees skipped
3. Hashtags from subfolders, the manifest and file names
4. Folder-to-category routing
5. DirectoryWatcher folder creation and enqueue-on-stable
"""

from pathlib import Path, PurePath

import pytest

from stockreel.classification.models import VideoCategory
from stockreel.config import DEFAULT_CATEGORY_FOLDER_MAP, PipelineConfig, WatcherConfig
from stockreel.jobs.pipeline import IngestionPipeline
from stockreel.jobs.queue import IngestionQueue
from stockreel.publishing.storage import InMemoryVideoStore
from stockreel.watchfolders.errors import TagsManifestError
from stockreel.watchfolders.routing import derive_category_override, relative_to_root
from stockreel.watchfolders.scanner import FileScanner, is_supported
from stockreel.watchfolders.stability import FileStabilityChecker
from stockreel.watchfolders.tags import (
    TagRule,
    filename_tags,
    load_tags_manifest,
    manifest_tags,
    merge_tags,
    normalize_hashtag,
    parse_tags_manifest,
    subfolder_tags,
)
from stockreel.watchfolders.watcher import DirectoryWatcher

from conftest import make_video


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# -----------------------------------------------------------------------------
# Stability
# -----------------------------------------------------------------------------

class TestFileStabilityChecker:
    """Tests for FileStabilityChecker."""

    def test_stable_after_threshold(self, tmp_path: Path):
        """A file is stable once its size held for the threshold."""
        clock = FakeClock()
        checker = FileStabilityChecker(threshold=2.0, clock=clock)
        path = make_video(tmp_path, "clip.mp4")

        assert checker.check_stability(path).is_stable is False
        clock.advance(1.0)
        assert checker.check_stability(path).is_stable is False
        clock.advance(1.0)

        check = checker.check_stability(path)
        assert check.is_stable is True
        assert check.unchanged_for == 2.0

    def test_growth_restarts_window(self, tmp_path: Path):
        """A size change resets the timer."""
        clock = FakeClock()
        checker = FileStabilityChecker(threshold=2.0, clock=clock)
        path = make_video(tmp_path, "clip.mp4", b"a")

        checker.check_stability(path)
        clock.advance(1.5)
        path.write_bytes(b"abc")
        assert "size changed" in checker.check_stability(path).reason
        clock.advance(1.5)
        assert checker.check_stability(path).is_stable is False
        clock.advance(0.5)
        assert checker.check_stability(path).is_stable is True

    def test_missing_file(self, tmp_path: Path):
        """A vanished file is never stable and has no size."""
        checker = FileStabilityChecker()

        check = checker.check_stability(tmp_path / "gone.mp4")

        assert check.is_stable is False
        assert check.size_bytes is None

    def test_reset(self, tmp_path: Path):
        """reset_tracking starts over."""
        clock = FakeClock()
        checker = FileStabilityChecker(threshold=1.0, clock=clock)
        path = make_video(tmp_path, "clip.mp4")

        checker.check_stability(path)
        clock.advance(5)
        checker.reset_tracking(path)

        assert checker.check_stability(path).reason == "First stability check"


# -----------------------------------------------------------------------------
# Scanner
# -----------------------------------------------------------------------------

class TestFileScanner:
    """Tests for FileScanner."""

    def test_supported_extensions(self):
        """mp4/mov/avi/webm in any case."""
        assert is_supported(Path("a.MP4"))
        assert is_supported(Path("a.webm"))
        assert not is_supported(Path("a.mkv"))
        assert not is_supported(Path("tags.csv"))

    def test_recursive_sorted_scan(self, tmp_path: Path):
        """Nested videos are found in path order; other files are ignored."""
        make_video(tmp_path, "beauty/b.mp4")
        make_video(tmp_path, "a.mov")
        make_video(tmp_path, "notes.txt")

        found = FileScanner().scan(tmp_path)

        assert [p.name for p in found] == ["a.mov", "b.mp4"]

    def test_hidden_and_excluded(self, tmp_path: Path):
        """Hidden entries and excluded subtrees are skipped."""
        make_video(tmp_path, ".hidden/a.mp4")
        make_video(tmp_path, ".b.mp4")
        make_video(tmp_path, "processed/c.mp4")
        make_video(tmp_path, "keep/d.mp4")

        found = FileScanner(exclude=[tmp_path / "processed"]).scan(tmp_path)

        assert [p.name for p in found] == ["d.mp4"]

    def test_missing_root(self, tmp_path: Path):
        """A missing root yields nothing."""
        assert FileScanner().scan(tmp_path / "nope") == []


# -----------------------------------------------------------------------------
# Tags
# -----------------------------------------------------------------------------

class TestTags:
    """Tests for hashtag derivation."""

    def test_normalize(self):
        """Full-width marks are normalized and missing marks added."""
        assert normalize_hashtag("＃夏") == "#夏"
        assert normalize_hashtag("summer") == "#summer"
        assert normalize_hashtag("  ") is None

    def test_merge_keeps_first(self):
        """Duplicates keep their first position."""
        assert merge_tags(["#a", "#b"], ["#b", "#c"]) == ["#a", "#b", "#c"]

    def test_filename_hashtags_and_brackets(self):
        """Inline hashtags and bracketed lists both count."""
        tags = filename_tags("serum #glow ＃夏 [spring, outdoor].mp4")

        assert tags == ["#glow", "#夏", "#spring", "#outdoor"]

    def test_subfolder_tags_skip_category_and_file(self):
        """Only directories below the category folder are tags."""
        tags = subfolder_tags(PurePath("beauty/summer sale/#promo/clip #x.mp4"))

        assert tags == ["#summer", "#sale", "#promo"]

    def test_manifest_parsing(self):
        """Comments and blank lines are skipped; only the first comma splits."""
        rules = parse_tags_manifest(
            "# comment\n"
            "\n"
            "serum_*,glow;skincare new\n"
            "nopattern\n"
            "*.mov,legacy\n"
        )

        assert rules == [
            TagRule(pattern="serum_*", tags=["glow", "skincare", "new"]),
            TagRule(pattern="*.mov", tags=["legacy"]),
        ]

    def test_manifest_matching(self):
        """Wildcards match case-insensitively across the whole name."""
        rules = [TagRule(pattern="serum_*", tags=["glow", "#skincare"])]

        assert manifest_tags(rules, "SERUM_01.mp4") == ["#glow", "#skincare"]
        assert manifest_tags(rules, "my_serum_01.mp4") == []

    def test_load_missing_manifest(self, tmp_path: Path):
        """A missing manifest yields no rules."""
        assert load_tags_manifest(tmp_path / "tags.csv") == []

    def test_load_undecodable_manifest(self, tmp_path: Path):
        """An unreadable manifest raises TagsManifestError."""
        path = tmp_path / "tags.csv"
        path.write_bytes(b"\xff\xfe\x00bad")

        with pytest.raises(TagsManifestError):
            load_tags_manifest(path)


# -----------------------------------------------------------------------------
# Routing
# -----------------------------------------------------------------------------

class TestRouting:
    """Tests for derive_category_override()."""

    @pytest.mark.parametrize("relative,expected", [
        ("beauty/clip.mp4", VideoCategory.BEAUTY),
        ("美容/clip.mp4", VideoCategory.BEAUTY),
        ("Fitness/clip.mp4", VideoCategory.FITNESS),
        ("ビジネス/sub/clip.mp4", VideoCategory.BUSINESS),
        ("random/clip.mp4", None),
        ("clip.mp4", None),
    ])
    def test_default_map(self, relative, expected):
        """Exact, lowercased and direct category names."""
        assert derive_category_override(PurePath(relative), DEFAULT_CATEGORY_FOLDER_MAP) == expected

    def test_custom_map(self):
        """Custom folders map onto categories."""
        result = derive_category_override(PurePath("gym/clip.mp4"), {"gym": "fitness"})
        assert result == VideoCategory.FITNESS

    def test_outside_root(self):
        """Paths outside the root are not routed."""
        assert relative_to_root(PurePath("/other/clip.mp4"), PurePath("/watch")) is None
        assert derive_category_override(None, DEFAULT_CATEGORY_FOLDER_MAP) is None


# -----------------------------------------------------------------------------
# DirectoryWatcher
# -----------------------------------------------------------------------------

def build_watcher(folders: dict, encoder, clock: FakeClock, **config_updates) -> DirectoryWatcher:
    watcher_config = WatcherConfig(
        watch_folder=str(folders["watch"]),
        processed_folder=str(folders["processed"]),
        failed_folder=str(folders["failed"]),
        temp_folder=str(folders["temp"]),
        **config_updates,
    )
    pipeline = IngestionPipeline.from_config(
        PipelineConfig(watcher=watcher_config), encoder, store=InMemoryVideoStore()
    )
    return DirectoryWatcher(
        watcher_config,
        IngestionQueue(pipeline),
        stability=FileStabilityChecker(threshold=2.0, clock=clock),
    )


class TestDirectoryWatcher:
    """Tests for DirectoryWatcher without the OS observer."""

    def test_ensure_folders(self, folders, encoder):
        """Category subfolders are created when routing is on."""
        watcher = build_watcher(folders, encoder, FakeClock(), category_from_subfolder=True)

        watcher.ensure_folders()

        assert (folders["watch"] / "beauty").is_dir()
        assert (folders["watch"] / "美容").is_dir()
        assert (folders["temp"] / "thumbnails").is_dir()
        assert (folders["temp"] / "watermarked").is_dir()

    def test_enqueue_when_stable(self, folders, encoder):
        """Files are enqueued only after the stability window."""
        clock = FakeClock()
        notified = []
        watcher = build_watcher(folders, encoder, clock, category_from_subfolder=True)
        watcher.on_enqueue = lambda: notified.append(True)
        video = make_video(folders["watch"], "beauty/summer/serum #glow.mp4")

        assert watcher.track(video) is True
        assert watcher.poll_once() == []
        clock.advance(2.0)
        enqueued = watcher.poll_once()

        assert enqueued == [video.resolve()]
        assert notified == [True]
        assert watcher.pending_paths == []

        item = watcher.queue.require_file_status(str(video.resolve()))
        assert item.category_override == VideoCategory.BEAUTY
        assert item.extra_tags == ["#summer", "#glow"]

    def test_manifest_tags_applied(self, folders, encoder):
        """Manifest rules add tags after folder tags."""
        (folders["watch"] / "tags.csv").write_text("serum*,promo\n", encoding="utf-8")
        clock = FakeClock()
        watcher = build_watcher(folders, encoder, clock)
        watcher.load_manifest()
        video = make_video(folders["watch"], "serum.mp4")

        discovered = watcher.describe(video.resolve())

        assert discovered.extra_tags == ["#promo"]
        assert discovered.category_override is None

    def test_unsupported_and_duplicate_ignored(self, folders, encoder):
        """Non-video files and already queued paths are not tracked."""
        watcher = build_watcher(folders, encoder, FakeClock())
        text_file = make_video(folders["watch"], "notes.txt")
        video = make_video(folders["watch"], "clip.mp4")
        watcher.queue.enqueue(str(video.resolve()))

        assert watcher.track(text_file) is False
        assert watcher.track(video) is False

    def test_vanished_file_dropped(self, folders, encoder):
        """A tracked file deleted before it settles is forgotten."""
        watcher = build_watcher(folders, encoder, FakeClock())
        video = make_video(folders["watch"], "clip.mp4")
        watcher.track(video)
        video.unlink()

        assert watcher.poll_once() == []
        assert watcher.pending_paths == []

    def test_output_folders_inside_root_excluded(self, tmp_path: Path, encoder):
        """processed/ under the watch root is never re-ingested."""
        root = tmp_path / "watch"
        folders = {
            "watch": root,
            "processed": root / "processed",
            "failed": root / "failed",
            "temp": tmp_path / "temp",
        }
        watcher = build_watcher(folders, encoder, FakeClock())
        archived = make_video(root, "processed/clip.mp4")

        assert watcher.track(archived) is False
