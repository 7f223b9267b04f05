"""Integration tests for the release workflow with scripted git and platform."""

import pytest

from composerify.approval import AlwaysApproveHandler, AlwaysRejectHandler
from composerify.errors import GitOperationError, MergeConflictError, PreconditionError
from composerify.release import ReleaseWorkflow, release_commit_message
from composerify.types import Outcome

CONFLICT = "Applied patch to 'composer.json' with conflicts."


@pytest.fixture
def branch_exists(fake_executor):
    fake_executor.on("git", "ls-remote", "origin", "composerify", output="c" * 40 + "\trefs/heads/composerify\n")
    fake_executor.on("git", "diff", output="diff --git a/composer.json b/composer.json\n")
    fake_executor.on("git", "diff", "--name-only", output="composer.json\n")
    return fake_executor


def _workflow(config, platform, executor, approval=None):
    return ReleaseWorkflow(
        config=config,
        platform=platform,
        approval=approval or AlwaysApproveHandler(),
        executor=executor,
    )


def test_release_creates_backup_and_switches_upstream(config, fake_platform, branch_exists):
    result = _workflow(config, fake_platform, branch_exists).run("mysite")

    assert result.outcome is Outcome.RELEASED
    assert result.backup_created is True
    pushes = branch_exists.calls_to("git", "push")
    assert pushes == [
        ["git", "push", "origin", "origin/master:refs/heads/master-bckp"],
        ["git", "push", "origin", "master"],
    ]
    assert branch_exists.called("git", "diff", "--name-only", "--binary", "origin/master", "origin/composerify")
    assert branch_exists.called("git", "apply", "--3way")
    assert branch_exists.calls_to("git", "commit", "-m") == [
        ["git", "commit", "-m", release_commit_message("composerify", "master")]
    ]
    assert fake_platform.switched == [(fake_platform.site.id, "empty")]


def test_existing_backup_is_kept(config, fake_platform, branch_exists):
    branch_exists.on("git", "ls-remote", "origin", "master-bckp", output="b" * 40 + "\trefs/heads/master-bckp\n")

    result = _workflow(config, fake_platform, branch_exists).run("mysite")

    assert result.backup_created is False
    assert branch_exists.calls_to("git", "push") == [["git", "push", "origin", "master"]]


def test_missing_branch(config, fake_platform, fake_executor):
    with pytest.raises(PreconditionError, match='"composerify" does not exist'):
        _workflow(config, fake_platform, fake_executor).run("mysite")
    assert not fake_executor.called("git", "push")


def test_declined(config, fake_platform, branch_exists):
    result = _workflow(config, fake_platform, branch_exists, AlwaysRejectHandler()).run("mysite")

    assert result.outcome is Outcome.DECLINED
    assert not branch_exists.called("git", "push")
    assert not branch_exists.called("git", "apply")
    assert fake_platform.switched == []


def test_nothing_to_release(config, fake_platform, branch_exists):
    branch_exists.on("git", "diff", "--name-only", output="")

    result = _workflow(config, fake_platform, branch_exists).run("mysite")

    assert result.outcome is Outcome.NOTHING_TO_RELEASE
    assert not branch_exists.called("git", "commit")
    assert branch_exists.calls_to("git", "push") == [
        ["git", "push", "origin", "origin/master:refs/heads/master-bckp"]
    ]
    assert fake_platform.switched == []


def test_conflict_stops_before_push(config, fake_platform, branch_exists):
    branch_exists.on("git", "apply", output=GitOperationError(CONFLICT))
    branch_exists.on("git", "diff", "--name-only", "--diff-filter=U", output="composer.json\n")

    with pytest.raises(MergeConflictError):
        _workflow(config, fake_platform, branch_exists).run("mysite")

    assert ["git", "push", "origin", "master"] not in branch_exists.commands
    assert fake_platform.switched == []
