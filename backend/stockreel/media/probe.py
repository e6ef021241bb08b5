"""
Metadata extraction using ffprobe.

Extraction is read-only and non-destructive. The probe binary is reached
through the Encoder interface so tests run without ffmpeg installed.

Missing optional metadata is explicitly represented as 0 or "unknown".
A missing video stream is a hard error; a missing audio stream is not.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..encoding.base import Encoder
from ..encoding.errors import EncoderError
from .errors import NoVideoStreamError, ProbeError
from .models import VideoMetadata

logger = logging.getLogger(__name__)


PROBE_ARGS = [
    "-v", "quiet",
    "-print_format", "json",
    "-show_format",
    "-show_streams",
]


def probe_video(
    filepath: str,
    encoder: Encoder,
    timeout: Optional[float] = 30.0,
) -> VideoMetadata:
    """
    Extract VideoMetadata from a media file.

    This is the main entry point for metadata extraction.

    Args:
        filepath: Path to the media file
        encoder: Encoder used to run ffprobe
        timeout: Probe deadline in seconds

    Returns:
        VideoMetadata

    Raises:
        ProbeError: If the file is missing, ffprobe fails or its output is unusable
        NoVideoStreamError: If the container has no video stream
    """
    path = Path(filepath)
    if not path.exists():
        raise ProbeError(filepath, "File does not exist")
    if not path.is_file():
        raise ProbeError(filepath, "Path is not a file")

    probe_data = run_probe(filepath, encoder, timeout)
    return parse_probe_data(filepath, probe_data)


def run_probe(
    filepath: str,
    encoder: Encoder,
    timeout: Optional[float] = 30.0,
) -> Dict[str, Any]:
    """
    Run ffprobe and return parsed JSON output.

    Raises:
        ProbeError: If ffprobe fails or emits invalid JSON
    """
    try:
        result = encoder.run_ffprobe([*PROBE_ARGS, str(filepath)], timeout=timeout)
    except EncoderError as e:
        raise ProbeError(filepath, f"ffprobe failed: {e}") from e

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ProbeError(filepath, f"Failed to parse ffprobe output: {e}") from e

    if not isinstance(data, dict):
        raise ProbeError(filepath, "Unexpected ffprobe output")
    return data


def parse_probe_data(filepath: str, probe_data: Dict[str, Any]) -> VideoMetadata:
    """
    Build VideoMetadata from an ffprobe JSON document.

    Raises:
        NoVideoStreamError: If no stream has codec_type "video"
    """
    video_stream = _get_video_stream(probe_data)
    if video_stream is None:
        raise NoVideoStreamError(filepath)

    fmt = probe_data.get("format") or {}

    duration = _safe_float(fmt.get("duration"))
    width = _safe_int(video_stream.get("width"))
    height = _safe_int(video_stream.get("height"))

    return VideoMetadata(
        duration=int(round(duration)),
        resolution=f"{width}x{height}",
        frame_rate=parse_frame_rate(video_stream.get("r_frame_rate")),
        bitrate=_safe_int(fmt.get("bit_rate")),
        codec=video_stream.get("codec_name") or "unknown",
        size=_safe_int(fmt.get("size")),
        format=str(fmt.get("format_name") or "unknown"),
        has_audio=_get_audio_stream(probe_data) is not None,
    )


def probe_duration(
    filepath: str,
    encoder: Encoder,
    timeout: Optional[float] = 30.0,
) -> Optional[float]:
    """
    Container duration in seconds (unrounded), or None if unavailable.

    Never raises; used where a best-effort value is good enough.
    """
    try:
        data = run_probe(filepath, encoder, timeout)
    except ProbeError as e:
        logger.debug(f"[Probe] Duration unavailable for {filepath}: {e}")
        return None
    duration = _safe_float((data.get("format") or {}).get("duration"))
    return duration if duration > 0 else None


def parse_frame_rate(value: Union[str, int, float, None]) -> float:
    """
    Parse an ffprobe frame rate.

    Accepts a plain number or a rational "NUM/DEN". When DEN is zero or
    absent the numerator is used as the rate. Never raises; unparseable
    input yields 0.0.

    Examples:
        "30000/1001" -> 29.97...
        "25"         -> 25.0
        "30/0"       -> 30.0
        "0/0"        -> 0.0
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if "/" not in text:
        return _safe_float(text)

    num_text, _, den_text = text.partition("/")
    numerator = _safe_float(num_text)
    denominator = _safe_float(den_text)
    if denominator == 0:
        return numerator
    return numerator / denominator


def _get_video_stream(probe_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Find the first video stream in ffprobe output."""
    for stream in probe_data.get("streams") or []:
        if stream.get("codec_type") == "video":
            return stream
    return None


def _get_audio_stream(probe_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Find the first audio stream in ffprobe output."""
    for stream in probe_data.get("streams") or []:
        if stream.get("codec_type") == "audio":
            return stream
    return None


def _safe_float(value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    # NaN and inf are not useful measurements
    if result != result or result in (float("inf"), float("-inf")):
        return 0.0
    return result


def _safe_int(value: Any) -> int:
    return int(_safe_float(value))
