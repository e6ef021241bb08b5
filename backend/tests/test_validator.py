"""
Tests for acceptance validation.

Every violated rule is reported, not just the first.
"""

from pathlib import Path

from stockreel.encoding.fake import FakeEncoder, build_probe_payload
from stockreel.media.models import VideoMetadata
from stockreel.media.validators import ValidationRules, validate_file, validate_metadata

from conftest import make_video


MB = 1024 * 1024


def metadata(**overrides) -> VideoMetadata:
    values = dict(
        duration=10,
        resolution="1080x1920",
        size=15 * MB,
        format="mov,mp4,m4a,3gp,3g2,mj2",
        codec="h264",
    )
    values.update(overrides)
    return VideoMetadata(**values)


class TestValidateMetadata:
    """Tests for validate_metadata()."""

    def test_valid_clip_passes(self):
        """A 10s, 15MB, 1080x1920 mp4 has no violations."""
        assert validate_metadata(metadata()) == []

    def test_duration_tolerance(self):
        """9s and 11s are accepted; 8s and 12s are not."""
        assert validate_metadata(metadata(duration=9)) == []
        assert validate_metadata(metadata(duration=11)) == []
        assert len(validate_metadata(metadata(duration=8))) == 1
        assert len(validate_metadata(metadata(duration=12))) == 1

    def test_size_limit(self):
        """150MB exceeds the 100MB ceiling."""
        issues = validate_metadata(metadata(size=150 * MB))

        assert len(issues) == 1
        assert "100MB" in issues[0]
        assert "150.00MB" in issues[0]

    def test_every_violation_reported(self):
        """Short duration and low resolution are both listed."""
        issues = validate_metadata(metadata(duration=5, resolution="640x360"))

        assert len(issues) == 2
        assert any("duration" in issue for issue in issues)
        assert any("Resolution too low" in issue for issue in issues)

    def test_unsupported_format(self):
        """Container families outside the allow-list are rejected."""
        issues = validate_metadata(metadata(format="matroska,webm"))
        assert issues == []

        issues = validate_metadata(metadata(format="flv"))
        assert len(issues) == 1
        assert "Unsupported format: flv" in issues[0]

    def test_both_dimensions_checked(self):
        """Landscape 1280x700 fails on height."""
        issues = validate_metadata(metadata(resolution="1280x700"))
        assert len(issues) == 1

    def test_custom_rules(self):
        """Rules are injectable."""
        rules = ValidationRules(min_duration=1, max_duration=60)
        assert validate_metadata(metadata(duration=45), rules) == []


class TestValidateFile:
    """Tests for validate_file()."""

    def test_report_carries_metadata(self, tmp_path: Path):
        """A successful probe is attached to the report."""
        video = make_video(tmp_path, "clip.mp4")

        report = validate_file(str(video), FakeEncoder())

        assert report.valid is True
        assert report.metadata is not None
        assert report.metadata.dimensions == (1080, 1920)

    def test_probe_failure_is_a_violation(self, tmp_path: Path):
        """Probe errors are reported, not raised."""
        video = make_video(tmp_path, "clip.mp4")
        encoder = FakeEncoder(probes={"clip.mp4": None})

        report = validate_file(str(video), encoder)

        assert report.valid is False
        assert len(report.errors) == 1
        assert report.errors[0].startswith("Failed to validate video")
        assert report.metadata is None

    def test_invalid_clip_lists_errors(self, tmp_path: Path):
        """A 30s 640x360 clip yields two errors."""
        video = make_video(tmp_path, "clip.mp4")
        encoder = FakeEncoder(probes={
            "clip.mp4": build_probe_payload(width=640, height=360, duration=30.0),
        })

        report = validate_file(str(video), encoder)

        assert report.valid is False
        assert len(report.errors) == 2
