"""Git operations facade.

One method per git concept, each a thin wrapper that hands an argv template
to the executor. The only method with its own decision logic is
apply_patch(), which classifies a 3-way apply into no-op, clean or conflict.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

from .errors import (
    GitOperationError,
    MalformedHashError,
    MergeConflictError,
    NoDiffError,
    PreconditionError,
)
from .executor import CommandExecutor, SubprocessExecutor

DEFAULT_REMOTE = "origin"
DEFAULT_BRANCH = "master"

_COMMIT_HASH_RE = re.compile(r"^[0-9a-f]{40}$", re.IGNORECASE)

# `git apply --3way` reports "Applied patch to 'x' with conflicts." (git >= 2.32)
# or "Applied patch x with conflicts." (older releases).
_CONFLICT_DIAGNOSTIC_RE = re.compile(r"Applied patch (?:to )?'?[^\n]+?'? with conflicts")


def validate_commit_hash(value: str) -> str:
    """Return value unchanged if it is a 40-digit hex sha1, else raise MalformedHashError."""
    if _COMMIT_HASH_RE.fullmatch(value):
        return value
    raise MalformedHashError(value)


def is_conflict_diagnostic(message: str) -> bool:
    """True if a failed `git apply --3way` reported that it applied with conflicts."""
    return bool(_CONFLICT_DIAGNOSTIC_RE.search(message))


def clone_repository(
    git_url: str,
    path: Path,
    executor: CommandExecutor | None = None,
) -> Path:
    """Clone git_url into path, replacing whatever is already there."""
    executor = executor or SubprocessExecutor()
    path = Path(path)
    if path.exists():
        shutil.rmtree(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    executor.run(["git", "clone", git_url, str(path)], cwd=path.parent)
    return path


class Git:
    """Git facade bound to a single working copy and a single remote."""

    def __init__(
        self,
        working_directory: Path | str,
        executor: CommandExecutor | None = None,
        remote: str = DEFAULT_REMOTE,
    ):
        self.working_directory = Path(working_directory)
        self.executor = executor or SubprocessExecutor()
        self.remote = remote

        try:
            self._execute(["status"])
        except GitOperationError as exc:
            raise PreconditionError(
                f"Failed to verify that {self.working_directory} is a valid Git repository: {exc}"
            ) from exc

    def commit(self, message: str, files: list[str] | None = None) -> None:
        """Stage all pending changes (or only files) and commit them."""
        if files is None:
            self._execute(["add", "-A"])
        else:
            self._execute(["add", "--", *files])
        self._execute(["commit", "-m", message])

    def diff(self, *options: str) -> str:
        return self._execute(["diff", *options])

    def diff_file_list(self, *options: str) -> list[str]:
        """Return the paths touched by `git diff <options>`."""
        output = self.diff("--name-only", *options)
        return [line for line in output.splitlines() if line.strip()]

    def apply(self, patch: str, *options: str) -> str:
        return self._execute(["apply", *options], stdin=patch)

    def apply_patch(self, *diff_options: str) -> None:
        """
        Apply the diff selected by diff_options to the working tree with a 3-way merge.

        Raises:
            NoDiffError: The diff touches no files; nothing was applied.
            MergeConflictError: The patch applied with conflicts; markers are
                left in the working tree and the error lists the unmerged files.
            GitOperationError: Any other apply failure, unclassified.
        """
        if not self.diff_file_list(*diff_options):
            raise NoDiffError(diff_options)

        patch = self.diff(*diff_options)
        try:
            self.apply(patch, "--3way")
        except GitOperationError as exc:
            if not is_conflict_diagnostic(str(exc)):
                raise
            conflicts = self.get_unmerged_files()
            if not conflicts:
                raise
            raise MergeConflictError(conflicts) from exc

    def get_unmerged_files(self) -> list[str]:
        return self.diff_file_list("--diff-filter=U")

    def is_anything_to_commit(self) -> bool:
        return self._execute(["status", "--porcelain"]) != ""

    def push(self, branch: str, *options: str) -> None:
        self._execute(["push", self.remote, branch, *options])

    def force_push(self, branch: str) -> None:
        """Push branch, overwriting the remote branch unconditionally."""
        self.push(branch, "--force")

    def is_remote_branch_exists(self, branch: str) -> bool:
        return self._execute(["ls-remote", self.remote, branch]).strip() != ""

    def add_remote(self, remote: str, name: str) -> None:
        """Add remote `name` pointing at `remote`, or repoint it if it already exists."""
        existing = self._execute(["remote"]).split()
        if name in existing:
            self._execute(["remote", "set-url", name, remote])
        else:
            self._execute(["remote", "add", name, remote])

    def fetch(self, remote_name: str | None = None) -> None:
        self._execute(["fetch", remote_name or self.remote])

    def checkout(self, *options: str) -> None:
        self._execute(["checkout", *options])

    def create_and_checkout_branch(self, branch: str) -> None:
        self._execute(["checkout", "-b", branch])

    def current_branch(self) -> str:
        return self._execute(["rev-parse", "--abbrev-ref", "HEAD"]).strip()

    def merge(self, *options: str) -> None:
        self._execute(["merge", *options])

    def move(self, *options: str) -> None:
        # Shell form so callers can pass globs.
        self._execute(f"git mv {' '.join(options)}")

    def remove(self, *options: str) -> None:
        self._execute(["rm", *options])

    def reset(self, *options: str) -> None:
        self._execute(["reset", *options])

    def delete_remote_branch(self, branch: str) -> None:
        self._execute(["push", self.remote, "--delete", branch])

    def get_head_commit_hash(self, branch: str) -> str:
        """Return the tip commit of <remote>/<branch>."""
        output = self._execute(["log", "--format=%H", "-n", "1", f"{self.remote}/{branch}"])
        return validate_commit_hash(output.strip())

    def get_commit_hashes(self, branch: str) -> list[str]:
        """Return commit hashes reachable from branch, most recent first."""
        output = self._execute(["log", branch, "--pretty=format:%H"])
        return [validate_commit_hash(line.strip()) for line in output.splitlines() if line.strip()]

    def _execute(self, command: list[str] | str, stdin: str | None = None) -> str:
        if isinstance(command, list):
            command = ["git", *command]
        return self.executor.run(command, cwd=self.working_directory, stdin=stdin)
