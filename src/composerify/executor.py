"""Process executor for external version-control commands.

The executor runs one command in a working directory and returns its stdout.
It never retries and never interprets output: a non-zero exit, a spawn
failure or a timeout all raise GitOperationError with the tool's diagnostic.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Protocol

from .errors import GitOperationError

DEFAULT_TIMEOUT_SECONDS = 180

# Undecodable bytes (e.g. a Latin-1 file in a diff) survive a decode/encode
# round trip as lone surrogates, so patches reach `git apply` unchanged.
OUTPUT_ENCODING = "utf-8"


class CommandExecutor(Protocol):
    """Anything able to run a command in a directory and return its stdout."""

    def run(
        self,
        command: list[str] | str,
        cwd: Path,
        stdin: str | None = None,
    ) -> str: ...


class SubprocessExecutor:
    """
    Runs commands with subprocess.

    An argv list is executed directly (no shell). A plain string is executed
    through the shell, for the few operations that rely on shell expansion.
    """

    def __init__(self, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds

    def run(
        self,
        command: list[str] | str,
        cwd: Path,
        stdin: str | None = None,
    ) -> str:
        shell = isinstance(command, str)
        try:
            res = subprocess.run(
                command,
                cwd=str(cwd),
                input=None if stdin is None else stdin.encode(OUTPUT_ENCODING, "surrogateescape"),
                shell=shell,
                capture_output=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise GitOperationError(
                f"Failed executing Git command: {_display(command)} timed out after {self.timeout_seconds}s",
                command=command,
            ) from exc
        except OSError as exc:
            raise GitOperationError(
                f"Failed executing Git command: {_display(command)}: {exc}",
                command=command,
            ) from exc

        stdout = _decode(res.stdout)
        stderr = _decode(res.stderr)
        if res.returncode != 0:
            diagnostic = "\n".join(part.strip() for part in (stdout, stderr) if part.strip())
            raise GitOperationError(
                f"Failed executing Git command: {_display(command)} "
                f"(exit code {res.returncode}): {diagnostic}",
                command=command,
                returncode=res.returncode,
                stdout=stdout,
                stderr=stderr,
            )

        return stdout


def _decode(output: bytes) -> str:
    return output.decode(OUTPUT_ENCODING, "surrogateescape")


def _display(command: list[str] | str) -> str:
    if isinstance(command, str):
        return command
    return " ".join(command)
