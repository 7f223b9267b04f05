"""Error taxonomy shared by the git facade and the workflows."""

from __future__ import annotations


class ConversionError(RuntimeError):
    """Base class for every failure the CLI reports as a non-zero exit."""


class GitOperationError(ConversionError):
    """An external command exited non-zero, could not be spawned, or timed out."""

    def __init__(
        self,
        message: str,
        command: list[str] | str | None = None,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class NoDiffError(ConversionError):
    """The requested diff touches no files; callers treat this as a skip."""

    def __init__(self, options: tuple[str, ...] | list[str]):
        self.options = tuple(options)
        super().__init__(f"No difference to apply for diff {' '.join(self.options)!r}")


class MergeConflictError(ConversionError):
    """A 3-way apply left files in an unmerged state."""

    def __init__(self, files: list[str]):
        self.files = list(files)
        listing = "\n".join(f"  - {f}" for f in self.files)
        super().__init__(f"Merge conflict in {len(self.files)} file(s):\n{listing}")


class MalformedHashError(ConversionError):
    """A resolved commit reference is not a 40-digit hexadecimal sha1."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f'"{value}" is not a valid sha1 commit hash value')


class PreconditionError(ConversionError):
    """A required state is missing; raised before anything is mutated."""


class PlatformError(ConversionError):
    """The hosting platform API rejected a request or a platform workflow failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
