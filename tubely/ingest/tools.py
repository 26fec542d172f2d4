from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from tubely.core.logging import get_logger

# Conventional shell status for "command not found".
EXIT_NOT_FOUND = 127


@dataclass(slots=True, frozen=True)
class ToolResult:
    """Outcome of one external tool invocation."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ToolRunner(ABC):
    @abstractmethod
    async def run(self, command: str, args: Sequence[str]) -> ToolResult: ...


class SubprocessToolRunner(ToolRunner):
    """Runs tools as child processes without tying up a worker thread while they execute."""

    def __init__(self) -> None:
        self.logger = get_logger(component="tool_runner")

    async def run(self, command: str, args: Sequence[str]) -> ToolResult:
        self.logger.debug("tool_run", command=command, args=list(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            self.logger.error("tool_not_found", command=command)
            return ToolResult(exit_code=EXIT_NOT_FOUND, stdout="", stderr=f"{command}: command not found")

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise

        result = ToolResult(
            exit_code=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        if not result.ok:
            self.logger.warning("tool_failed", command=command, exit_code=result.exit_code)
        return result


__all__ = ["ToolResult", "ToolRunner", "SubprocessToolRunner", "EXIT_NOT_FOUND"]
