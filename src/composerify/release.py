"""Release workflow: bring the converted branch into the primary branch.

Before touching <primary> the workflow makes sure a <backup> snapshot of it
exists remotely, which is what the restore workflow later resets to.
"""

from __future__ import annotations

from .errors import NoDiffError, PreconditionError
from .restore import LOCAL_COPY_SUFFIX
from .types import Outcome, ReleaseResult
from .workflow import BaseWorkflow


def release_commit_message(branch: str, primary: str) -> str:
    return f"Release {branch} to {primary}"


class ReleaseWorkflow(BaseWorkflow):
    """Applies <remote>/<primary>..<remote>/<branch> onto <primary> and pushes it."""

    def run(self, site_id: str, branch: str | None = None) -> ReleaseResult:
        branch = branch or self.config.git.target_branch
        primary = self.config.git.primary_branch
        backup = self.config.git.backup_branch
        remote = self.config.git.remote
        self.log("release_started", {"site": site_id, "branch": branch, "primary": primary})

        connection = self.platform.resolve(site_id)
        git = self.open_repository(self.clone(connection, LOCAL_COPY_SUFFIX))

        if not git.is_remote_branch_exists(branch):
            raise PreconditionError(f'The git branch "{branch}" does not exist')

        if not self.approval.confirm(
            f'Are you sure you want to release "{branch}" git branch to "{primary}"?'
        ):
            self.warning(f'Aborted: "{branch}" was not released')
            return self._finish(Outcome.DECLINED, branch, backup_created=False)

        backup_created = False
        if git.is_remote_branch_exists(backup):
            self.notice(f'The backup git branch "{backup}" already exists, keeping it')
        else:
            self.notice(f'Creating backup git branch "{backup}" from "{primary}"...')
            git.push(f"{remote}/{primary}:refs/heads/{backup}")
            backup_created = True

        git.checkout(primary)
        try:
            git.apply_patch("--binary", f"{remote}/{primary}", f"{remote}/{branch}")
        except NoDiffError:
            self.warning(f'Nothing to release: "{branch}" matches "{primary}"')
            return self._finish(Outcome.NOTHING_TO_RELEASE, branch, backup_created)

        self.notice(f'Pushing "{branch}" changes to "{primary}" git branch...')
        git.commit(release_commit_message(branch, primary))
        git.push(primary)

        self.notice(f'Switching the site upstream to "{self.config.upstreams.composer}"...')
        self.platform.switch_upstream(connection.site_id, self.config.upstreams.composer)
        self.notice("Done!")
        return self._finish(Outcome.RELEASED, branch, backup_created)

    def _finish(self, outcome: Outcome, branch: str, backup_created: bool) -> ReleaseResult:
        self.log(
            "outcome",
            {"outcome": outcome.value, "branch": branch, "backup_created": backup_created},
        )
        return ReleaseResult(outcome=outcome, branch=branch, backup_created=backup_created)
