"""Restore workflow: reset the primary branch to its pre-conversion backup.

This rewrites published history on purpose. The backup branch is the only
safety net, so its absence is a hard precondition failure.
"""

from __future__ import annotations

from .errors import PreconditionError
from .types import Outcome, RestoreResult
from .workflow import BaseWorkflow

LOCAL_COPY_SUFFIX = "composer_conversion"


class RestoreWorkflow(BaseWorkflow):
    """Resets <primary> to the tip of <backup> and relinks the original upstream."""

    def run(self, site_id: str) -> RestoreResult:
        primary = self.config.git.primary_branch
        backup = self.config.git.backup_branch
        self.log("restore_started", {"site": site_id, "primary": primary, "backup": backup})

        connection = self.platform.resolve(site_id)
        git = self.open_repository(self.clone(connection, LOCAL_COPY_SUFFIX))

        if not git.is_remote_branch_exists(backup):
            raise PreconditionError(f'The backup git branch "{backup}" does not exist')

        backup_hash = git.get_head_commit_hash(backup)
        primary_hash = git.get_head_commit_hash(primary)
        if backup_hash == primary_hash:
            self.warning(f'Abort: the backup git branch "{backup}" matches "{primary}"')
            return self._finish(Outcome.NOTHING_TO_RESTORE, backup_hash, primary_hash)

        if not self.approval.confirm(
            f'Are you sure you want to restore "{primary}" git branch to "{backup_hash}" '
            f'(the head commit of "{backup}" git branch)?'
        ):
            self.warning(f'Aborted: "{primary}" git branch was not restored')
            return self._finish(Outcome.DECLINED, backup_hash, primary_hash)

        self.notice(f'Restoring "{primary}" git branch to "{backup_hash}"...')
        git.checkout(primary)
        git.reset("--hard", backup_hash)
        git.push(primary, "--force")

        self.notice(f'Switching the site upstream to "{self.config.upstreams.drops8}"...')
        self.platform.switch_upstream(connection.site_id, self.config.upstreams.drops8)
        self.notice(
            f'Link to "dev" environment dashboard: {self.platform.dashboard_url(connection.site_id, "dev")}'
        )
        return self._finish(Outcome.RESTORED, backup_hash, primary_hash)

    def _finish(self, outcome: Outcome, target_hash: str, previous_hash: str) -> RestoreResult:
        self.log(
            "outcome",
            {"outcome": outcome.value, "target_hash": target_hash, "previous_hash": previous_hash},
        )
        return RestoreResult(outcome=outcome, target_hash=target_hash, previous_hash=previous_hash)
