from __future__ import annotations

from pathlib import Path

from tubely.core.errors import RemuxFailed

from .staging import StagedFile
from .tools import ToolRunner

PROCESSED_SUFFIX = ".processed"


def faststart_output_path(source: Path) -> Path:
    return source.with_name(source.name + PROCESSED_SUFFIX)


def build_faststart_args(source: Path, target: Path) -> list[str]:
    # The output suffix is not a container extension, so the muxer is forced with -f.
    return [
        "-nostdin",
        "-v",
        "error",
        "-y",
        "-i",
        str(source),
        "-movflags",
        "faststart",
        "-map_metadata",
        "0",
        "-codec",
        "copy",
        "-f",
        "mp4",
        str(target),
    ]


async def remux_faststart(
    staged: StagedFile,
    runner: ToolRunner,
    *,
    binary: str = "ffmpeg",
    output: Path | None = None,
) -> StagedFile:
    """Rewrite ``staged`` with its index atom up front so playback can start early.

    Streams are copied, never re-encoded. The input file is left in place for
    the caller; on failure any partial output is removed before raising.
    """
    target = output or faststart_output_path(staged.path)
    result = await runner.run(binary, build_faststart_args(staged.path, target))
    if not result.ok:
        target.unlink(missing_ok=True)
        raise RemuxFailed(stderr=result.stderr or f"ffmpeg exited with status {result.exit_code}")

    if not target.exists():
        raise RemuxFailed("ffmpeg reported success but wrote no output")

    return StagedFile(path=target, size_bytes=target.stat().st_size, content_type=staged.content_type)


__all__ = ["PROCESSED_SUFFIX", "build_faststart_args", "faststart_output_path", "remux_faststart"]
