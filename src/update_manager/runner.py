"""
External command execution for provider adapters.

Every package manager call goes through CommandRunner.run(), which:
- never raises for a nonzero exit code (several managers exit 1 to say
  "updates exist");
- enforces a timeout, killing the whole process tree when it expires;
- kills the process tree when the calling task is cancelled (Ctrl+C).

Tests substitute a fake runner with the same two methods.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
from collections.abc import Sequence

import psutil
from pydantic import BaseModel

from update_manager.errors import CommandTimeoutError
from update_manager.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 60.0
KILL_WAIT_TIMEOUT = 5.0


class CommandResult(BaseModel):
    """
    Outcome of one external command.

    Attributes:
        stdout: Captured standard output, stripped.
        stderr: Captured standard error, stripped.
        exit_code: Process exit code (1 when the process could not start,
            -1 when it was killed on timeout).
        success: True iff exit_code is 0.
        timed_out: True if the command was killed because it ran too long.
    """

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    success: bool = True
    timed_out: bool = False

    @property
    def output(self) -> str:
        """stdout and stderr combined, for scanning failure messages."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def raise_for_timeout(self, command: str) -> None:
        """
        Raise if the command was killed for running too long.

        Raises:
            CommandTimeoutError: If timed_out is set.
        """
        if self.timed_out:
            raise CommandTimeoutError(
                f"{command} timed out",
                details={"command": command, "stderr": self.stderr},
            )


def _kill_process_tree(process: asyncio.subprocess.Process) -> None:
    """
    Best-effort kill of a process and all of its children.

    Children started through an elevation helper may refuse the kill
    (AccessDenied); they are logged and left alone. The direct child is
    always killed through the asyncio handle if psutil cannot do it.
    """
    try:
        parent = psutil.Process(process.pid)
        children = parent.children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        parent = None
        children = []

    for child in children:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.debug("Access denied killing child process", extra={"pid": child.pid})

    if parent is not None:
        try:
            parent.kill()
            return
        except psutil.NoSuchProcess:
            return
        except psutil.AccessDenied:
            logger.debug("Access denied killing process", extra={"pid": process.pid})

    try:
        process.kill()
    except ProcessLookupError:
        pass
    except PermissionError:
        logger.debug("Could not kill process", extra={"pid": process.pid})


class CommandRunner:
    """
    Runs external commands with a timeout.

    On Windows, commands run through `cmd.exe /c` so that .cmd shims (npm,
    pnpm) and WindowsApps aliases (winget) resolve the same way they do in
    a terminal.
    """

    def __init__(self, *, use_cmd_shell: bool | None = None) -> None:
        """
        Initialize the runner.

        Args:
            use_cmd_shell: Wrap commands in `cmd.exe /c`. Defaults to True on
                Windows.
        """
        self.use_cmd_shell = (
            sys.platform == "win32" if use_cmd_shell is None else use_cmd_shell
        )

    def which(self, command: str) -> bool:
        """Check whether a command resolves on PATH. Never raises."""
        try:
            return shutil.which(command) is not None
        except OSError:
            return False

    async def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float = DEFAULT_TIMEOUT,
        cwd: str | None = None,
    ) -> CommandResult:
        """
        Run a command and capture its output.

        Args:
            argv: Command and arguments.
            timeout: Seconds before the process tree is killed.
            cwd: Working directory.

        Returns:
            CommandResult; a timeout is reported with timed_out=True.
        """
        args = ["cmd.exe", "/c", *argv] if self.use_cmd_shell else list(argv)
        env = {**os.environ, "FORCE_COLOR": "0", "NO_COLOR": "1"}

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
                cwd=cwd,
                env=env,
            )
        except OSError as e:
            logger.debug(
                "Failed to start command",
                extra={"command": " ".join(argv), "error": str(e)},
            )
            return CommandResult(
                stderr=str(e),
                exit_code=1,
                success=False,
            )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout,
            )
        except TimeoutError:
            _kill_process_tree(process)
            try:
                await asyncio.wait_for(process.wait(), timeout=KILL_WAIT_TIMEOUT)
            except TimeoutError:
                logger.warning(
                    "Process did not exit after kill",
                    extra={"command": " ".join(argv), "pid": process.pid},
                )
            logger.warning(
                "Command timed out",
                extra={"command": " ".join(argv), "timeout": timeout},
            )
            return CommandResult(
                stderr=f"Command timed out after {timeout}s",
                exit_code=-1,
                success=False,
                timed_out=True,
            )
        except asyncio.CancelledError:
            _kill_process_tree(process)
            raise

        exit_code = process.returncode if process.returncode is not None else 0
        result = CommandResult(
            stdout=stdout.decode("utf-8", errors="replace").strip(),
            stderr=stderr.decode("utf-8", errors="replace").strip(),
            exit_code=exit_code,
            success=exit_code == 0,
        )

        logger.debug(
            "Command finished",
            extra={"command": " ".join(argv), "exit_code": exit_code},
        )
        return result
