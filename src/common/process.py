"""Running external tools (tsc, tslint, npm) as subprocesses.

The tester only talks to :class:`ProcessRunner`; tests swap in a fake with
the same ``run`` coroutine.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class ProcessResult:
    """Exit code and captured output of a finished process."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProcessRunner:
    """Runs commands with ``asyncio.create_subprocess_exec``.

    Timeouts are left to the tools themselves.
    """

    async def run(self, command: str, args: Sequence[str] = (), cwd: Optional[str] = None) -> ProcessResult:
        logger.debug("Running: %s %s (cwd=%s)", command, " ".join(args), cwd)
        try:
            proc = await asyncio.create_subprocess_exec(
                command,
                *args,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            return ProcessResult(COMMAND_NOT_FOUND, "", f"{command}: {exc}")
        stdout, stderr = await proc.communicate()
        return ProcessResult(
            proc.returncode if proc.returncode is not None else -1,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )
