"""Process runner for the external scanning command.

The scheduler depends on the ``ProcessRunner`` protocol so tests can swap
in a fake; ``SubprocessRunner`` is the real implementation.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from claudemon.errors import ExternalProcessError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner(Protocol):
    async def run(self, command: Sequence[str], *, cwd: Path, timeout: float) -> ProcessResult: ...


class SubprocessRunner:
    """Run a command with asyncio subprocesses, capturing all output.

    stdin is closed. On timeout the process is killed and reaped before
    ``ExternalProcessError(timed_out=True)`` is raised; whatever it wrote is
    discarded.
    """

    async def run(self, command: Sequence[str], *, cwd: Path, timeout: float) -> ProcessResult:
        if not command:
            raise ExternalProcessError("Empty scan command")
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ExternalProcessError(f"Failed to start {command[0]!r}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise ExternalProcessError(f"Scan timed out after {timeout:g}s", timed_out=True) from None
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        returncode = await proc.wait()
        return ProcessResult(
            returncode=returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


def validate_command(command: Sequence[str], *, cwd: str | Path | None = None) -> str | None:
    """Check that the command's executable exists.

    Returns None if valid, or an error message string if not. Relative
    executable paths are resolved against *cwd* when given.
    """
    tokens = [str(t) for t in command]
    if not tokens:
        return "Empty command"
    binary = tokens[0]

    if "/" in binary or "\\" in binary:
        binary_path = Path(binary)
        candidates: list[Path] = []
        if binary_path.is_absolute():
            candidates.append(binary_path)
        else:
            if cwd is not None:
                candidates.append(Path(cwd) / binary_path)
            candidates.append(binary_path)
        for candidate in candidates:
            if candidate.is_file() and os.access(candidate, os.X_OK):
                return None

    if shutil.which(binary) is None:
        return f"Command {binary!r} not found on PATH"
    return None
