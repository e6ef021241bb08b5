"""
In-memory encoder for tests and dry runs.

FakeEncoder implements the Encoder interface without spawning anything:
- ffprobe calls answer with canned JSON keyed by file name
- ffmpeg calls materialize the output path (a real JPEG for image outputs,
  a copy of the first input for everything else)
- every argument vector is recorded for assertions, along with the contents
  of any -filter_script:v file (read before the caller deletes it)
"""

import json
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from PIL import Image

from .base import Encoder, EncoderResult
from .errors import EncoderProcessError, EncoderTimeoutError


IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp"}

DEFAULT_FORMAT_NAME = "mov,mp4,m4a,3gp,3g2,mj2"


def build_probe_payload(
    width: int = 1080,
    height: int = 1920,
    duration: float = 10.0,
    size_bytes: int = 15 * 1024 * 1024,
    format_name: str = DEFAULT_FORMAT_NAME,
    codec_name: str = "h264",
    r_frame_rate: Optional[str] = "30/1",
    bit_rate: Optional[int] = 12_000_000,
    include_video: bool = True,
    include_audio: bool = True,
) -> Dict[str, Any]:
    """
    Build an ffprobe-shaped JSON document.

    Numeric format fields are strings, as ffprobe emits them.
    """
    streams: List[Dict[str, Any]] = []
    if include_video:
        video: Dict[str, Any] = {
            "index": 0,
            "codec_type": "video",
            "codec_name": codec_name,
            "width": width,
            "height": height,
        }
        if r_frame_rate is not None:
            video["r_frame_rate"] = r_frame_rate
        streams.append(video)
    if include_audio:
        streams.append({
            "index": len(streams),
            "codec_type": "audio",
            "codec_name": "aac",
            "channels": 2,
            "sample_rate": "48000",
        })

    fmt: Dict[str, Any] = {
        "format_name": format_name,
        "duration": f"{duration:.6f}",
        "size": str(size_bytes),
    }
    if bit_rate is not None:
        fmt["bit_rate"] = str(bit_rate)

    return {"streams": streams, "format": fmt}


class FakeEncoder(Encoder):
    """
    Scriptable encoder double.

    Attributes:
        probes: File name → ffprobe payload (None simulates a probe failure).
            A probed path matches a key when its file name ends with the key,
            so "watermarked_clip.mp4" answers with the entry for "clip.mp4".
        default_probe: Payload returned when no key matches.
        fail_on: Substrings; an ffmpeg call whose arguments (or filter script)
            contain any of them exits with code 1.
        timeout_on: Substrings; a matching ffmpeg call raises EncoderTimeoutError.
        calls: Recorded (binary, args) tuples in call order.
        filter_scripts: Contents of filter scripts, in call order.
    """

    def __init__(
        self,
        probes: Optional[Dict[str, Optional[Dict[str, Any]]]] = None,
        default_probe: Optional[Dict[str, Any]] = None,
        fail_on: Optional[Sequence[str]] = None,
        timeout_on: Optional[Sequence[str]] = None,
    ):
        self.probes: Dict[str, Optional[Dict[str, Any]]] = dict(probes or {})
        self.default_probe = default_probe if default_probe is not None else build_probe_payload()
        self.fail_on: List[str] = list(fail_on or [])
        self.timeout_on: List[str] = list(timeout_on or [])
        self.calls: List[Tuple[str, List[str]]] = []
        self.filter_scripts: List[str] = []
        self.cancelled = False

    @property
    def name(self) -> str:
        return "Fake"

    @property
    def available(self) -> bool:
        return True

    def ffmpeg_calls(self) -> List[List[str]]:
        return [args for binary, args in self.calls if binary == "ffmpeg"]

    def ffprobe_calls(self) -> List[List[str]]:
        return [args for binary, args in self.calls if binary == "ffprobe"]

    def run_ffprobe(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> EncoderResult:
        arg_list = list(args)
        self.calls.append(("ffprobe", arg_list))
        command = ["ffprobe", *arg_list]

        payload = self._lookup_probe(arg_list[-1] if arg_list else "")
        if payload is None:
            result = self._result(command, 1, stderr="simulated probe failure")
        else:
            result = self._result(command, 0, stdout=json.dumps(payload))

        if check and result.returncode != 0:
            raise EncoderProcessError(command, result.returncode, result.stderr)
        return result

    def run_ffmpeg(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> EncoderResult:
        arg_list = list(args)
        self.calls.append(("ffmpeg", arg_list))
        command = ["ffmpeg", *arg_list]

        scripts = self._read_filter_scripts(arg_list)
        self.filter_scripts.extend(scripts)
        searchable = arg_list + scripts

        if self._matches(searchable, self.timeout_on):
            raise EncoderTimeoutError(command, timeout or 0.0)

        if self._matches(searchable, self.fail_on):
            result = self._result(command, 1, stderr="simulated encoder failure")
            if check:
                raise EncoderProcessError(command, result.returncode, result.stderr)
            return result

        self._materialize_output(arg_list)
        return self._result(command, 0)

    def cancel(self) -> None:
        self.cancelled = True

    def _lookup_probe(self, path: str) -> Optional[Dict[str, Any]]:
        name = Path(path).name
        if name in self.probes:
            return self.probes[name]
        for key, payload in self.probes.items():
            if name.endswith(key):
                return payload
        return self.default_probe

    @staticmethod
    def _read_filter_scripts(args: List[str]) -> List[str]:
        return [
            Path(args[i + 1]).read_text(encoding="utf-8")
            for i, arg in enumerate(args[:-1])
            if arg.startswith("-filter_script")
        ]

    @staticmethod
    def _matches(args: List[str], needles: List[str]) -> bool:
        return any(needle in arg for needle in needles for arg in args)

    @staticmethod
    def _result(command: List[str], returncode: int, stdout: str = "", stderr: str = "") -> EncoderResult:
        return EncoderResult(
            command=command,
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            completed_at=datetime.now(),
        )

    @staticmethod
    def _materialize_output(args: List[str]) -> None:
        if not args:
            return
        output = Path(args[-1])
        output.parent.mkdir(parents=True, exist_ok=True)

        if output.suffix.lower() in IMAGE_SUFFIXES:
            size = (720, 1280)
            if "-s" in args:
                width, _, height = args[args.index("-s") + 1].partition("x")
                size = (int(width), int(height))
            Image.new("RGB", size, (32, 32, 32)).save(output)
            return

        source = Path(args[args.index("-i") + 1]) if "-i" in args else None
        if source is not None and source.is_file():
            shutil.copyfile(source, output)
        else:
            output.write_bytes(b"fake-video")
