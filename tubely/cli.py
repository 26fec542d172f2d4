from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .core.errors import ProbeFailed, RemuxFailed
from .ingest.probe import probe_video
from .ingest.remux import faststart_output_path, remux_faststart
from .ingest.staging import StagedFile
from .ingest.tools import SubprocessToolRunner

console = Console()


def main(argv: Optional[list[str]] = None) -> None:
    """The main entry point for the CLI.

    Args:
        argv: The command-line arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "check", False):
        _run_environment_check(args)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI.

    Returns:
        The argument parser.
    """
    parser = argparse.ArgumentParser(description="Tubely ingest developer CLI")
    parser.add_argument("--check", action="store_true", help="Validate presence of ffmpeg/ffprobe dependencies")
    parser.add_argument("--ffprobe", default="ffprobe", help="ffprobe executable to use")
    parser.add_argument("--ffmpeg", default="ffmpeg", help="ffmpeg executable to use")

    subparsers = parser.add_subparsers(dest="command")

    probe_parser = subparsers.add_parser("probe", help="Print the dimensions and orientation class of a video")
    probe_parser.add_argument("--file", required=True, help="Path to the source media file")
    probe_parser.set_defaults(func=_cmd_probe)

    faststart_parser = subparsers.add_parser("faststart", help="Remux a video for progressive playback")
    faststart_parser.add_argument("--file", required=True, help="Path to the source media file")
    faststart_parser.add_argument("--out", default=None, help="Output path (defaults to <file>.processed)")
    faststart_parser.set_defaults(func=_cmd_faststart)
    return parser


def _cmd_probe(args: argparse.Namespace) -> None:
    media_path = _existing_file(args.file)
    try:
        geometry = asyncio.run(probe_video(media_path, SubprocessToolRunner(), binary=args.ffprobe))
    except ProbeFailed as exc:
        console.print(f"[red]ffprobe failed:[/] {exc.message}")
        sys.exit(3)

    console.print_json(
        data={
            "file": str(media_path),
            "width": geometry.width,
            "height": geometry.height,
            "ratio": round(geometry.ratio, 4),
            "orientation": geometry.orientation.value,
        }
    )


def _cmd_faststart(args: argparse.Namespace) -> None:
    media_path = _existing_file(args.file)
    output = Path(args.out).expanduser().resolve() if args.out else faststart_output_path(media_path)
    staged = StagedFile(path=media_path, size_bytes=media_path.stat().st_size, content_type="video/mp4")
    try:
        processed = asyncio.run(remux_faststart(staged, SubprocessToolRunner(), binary=args.ffmpeg, output=output))
    except RemuxFailed as exc:
        console.print(f"[red]ffmpeg failed:[/] {exc.message}")
        sys.exit(3)
    console.print(f"[green]Remuxed to {processed.path}[/] ({processed.size_bytes} bytes)")


def _existing_file(raw: str) -> Path:
    media_path = Path(raw).expanduser().resolve()
    if not media_path.exists():
        console.print(f"[red]File not found: {media_path}[/]")
        sys.exit(2)
    return media_path


def _run_environment_check(args: argparse.Namespace) -> None:
    """Check for the presence of required external dependencies."""
    runner = SubprocessToolRunner()

    async def _check() -> dict[str, bool]:
        results = {}
        for label, binary in (("ffmpeg", args.ffmpeg), ("ffprobe", args.ffprobe)):
            results[label] = (await runner.run(binary, ["-version"])).ok
        return results

    results = asyncio.run(_check())

    console.rule("[bold]Environment Check")
    for label, ok in results.items():
        console.print(f"[bold]{label}[/]: {'✅' if ok else '❌'}")

    if not all(results.values()):
        console.print("[red]Missing dependencies detected. Install ffmpeg to continue.[/]")
        sys.exit(1)
    console.print("[green]Environment looks good![/]")


if __name__ == "__main__":
    main()
