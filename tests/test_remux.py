from __future__ import annotations

import asyncio

import pytest

from tubely.core.errors import RemuxFailed
from tubely.ingest.remux import remux_faststart
from tubely.ingest.staging import StagedFile

from tests.fakes import FakeToolRunner


def _staged(tmp_path) -> StagedFile:
    path = tmp_path / "upload.mp4"
    path.write_bytes(b"mdat-payload")
    return StagedFile(path=path, size_bytes=12, content_type="video/mp4")


def test_remux_writes_processed_sibling(tmp_path):
    staged = _staged(tmp_path)
    runner = FakeToolRunner()

    processed = asyncio.run(remux_faststart(staged, runner))

    assert processed.path == tmp_path / "upload.mp4.processed"
    assert processed.path.read_bytes() == b"moovmdat-payload"
    assert processed.size_bytes == len(b"moovmdat-payload")
    assert processed.content_type == "video/mp4"
    assert staged.path.exists()

    command, args = runner.calls[0]
    assert command == "ffmpeg"
    assert args[args.index("-movflags") + 1] == "faststart"
    assert args[args.index("-codec") + 1] == "copy"
    assert args[args.index("-f") + 1] == "mp4"


def test_remux_failure_carries_stderr_and_removes_partial_output(tmp_path):
    staged = _staged(tmp_path)
    runner = FakeToolRunner(remux_exit=1, remux_stderr="Invalid data found")

    with pytest.raises(RemuxFailed) as excinfo:
        asyncio.run(remux_faststart(staged, runner))

    assert str(excinfo.value) == "Invalid data found"
    assert excinfo.value.stderr == "Invalid data found"
    assert not (tmp_path / "upload.mp4.processed").exists()
    assert staged.path.exists()


def test_remux_honours_explicit_output(tmp_path):
    staged = _staged(tmp_path)
    target = tmp_path / "out" / "fast.mp4"
    target.parent.mkdir()

    processed = asyncio.run(remux_faststart(staged, FakeToolRunner(), output=target))

    assert processed.path == target
    assert target.exists()


def test_unprocessable_media_maps_to_422():
    from tubely.core.errors import ProbeFailed

    assert RemuxFailed("bad").status_code == 422
    assert ProbeFailed("bad").status_code == 422
