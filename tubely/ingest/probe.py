from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

from tubely.core.errors import ProbeFailed

from .tools import ToolRunner

# Open intervals around 16:9 and 9:16 that absorb rounding in encoded sizes.
LANDSCAPE_BAND = (1.76, 1.78)
PORTRAIT_BAND = (0.55, 0.57)


class Orientation(str, enum.Enum):
    landscape = "landscape"
    portrait = "portrait"
    other = "other"


@dataclass(slots=True, frozen=True)
class VideoGeometry:
    width: int
    height: int
    orientation: Orientation

    @property
    def ratio(self) -> float:
        return self.width / self.height


def classify_aspect_ratio(width: int, height: int) -> Orientation:
    """Return the orientation class for a frame of ``width`` x ``height`` pixels."""
    ratio = width / height
    if LANDSCAPE_BAND[0] < ratio < LANDSCAPE_BAND[1]:
        return Orientation.landscape
    if PORTRAIT_BAND[0] < ratio < PORTRAIT_BAND[1]:
        return Orientation.portrait
    return Orientation.other


def build_probe_args(path: Path) -> list[str]:
    return [
        "-v",
        "error",
        "-select_streams",
        "v:0",
        "-show_entries",
        "stream=width,height",
        "-of",
        "json",
        str(path),
    ]


def parse_stream_dimensions(raw: Dict[str, Any]) -> Tuple[int, int]:
    """Extract width and height of the first stream from ffprobe JSON.

    Args:
        raw: The decoded ffprobe output.

    Returns:
        A ``(width, height)`` tuple of positive integers.

    Raises:
        ProbeFailed: When no stream is reported or its dimensions are unusable.
    """
    streams = raw.get("streams") if isinstance(raw, dict) else None
    if not streams or not isinstance(streams, list):
        raise ProbeFailed("ffprobe reported no video stream", detail="no_video_stream")

    first = streams[0] if isinstance(streams[0], dict) else {}
    width = _positive_int(first.get("width"))
    height = _positive_int(first.get("height"))
    if width is None or height is None:
        raise ProbeFailed(
            f"ffprobe reported invalid dimensions: width={first.get('width')!r} height={first.get('height')!r}",
            detail="invalid_dimensions",
        )
    return width, height


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool) or value in (None, "N/A", ""):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


async def probe_video(path: Path, runner: ToolRunner, *, binary: str = "ffprobe") -> VideoGeometry:
    """Run ffprobe against ``path`` and classify the first video stream."""
    result = await runner.run(binary, build_probe_args(path))
    if not result.ok:
        raise ProbeFailed(result.stderr.strip() or f"ffprobe exited with status {result.exit_code}")

    try:
        raw = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise ProbeFailed("ffprobe produced malformed JSON", detail="malformed_probe_output") from exc

    width, height = parse_stream_dimensions(raw)
    return VideoGeometry(width=width, height=height, orientation=classify_aspect_ratio(width, height))


__all__ = [
    "Orientation",
    "VideoGeometry",
    "build_probe_args",
    "classify_aspect_ratio",
    "parse_stream_dimensions",
    "probe_video",
]
