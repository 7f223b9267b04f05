"""Conversion workflow: platform-upstream site -> Composer-managed branch.

States are visited strictly in order:

    cloned -> components_detected -> target_branch_created
           -> dependencies_added (once per project)
           -> push_guard_evaluated -> pushed | aborted

Both terminal states are successful outcomes. Any exception from a step
propagates unchanged; commits already made stay on the local branch.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from .composer import ComposerManifest
from .errors import PreconditionError
from .projects import detect_contrib_projects
from .types import (
    ContribProject,
    ConversionResult,
    ConversionState,
    ManifestEditor,
    Outcome,
)
from .workflow import BaseWorkflow

DRUPAL8_FRAMEWORK = "drupal8"

_NEXT_STATES: dict[ConversionState, set[ConversionState]] = {
    ConversionState.STARTED: {ConversionState.CLONED},
    ConversionState.CLONED: {ConversionState.COMPONENTS_DETECTED},
    ConversionState.COMPONENTS_DETECTED: {ConversionState.TARGET_BRANCH_CREATED},
    ConversionState.TARGET_BRANCH_CREATED: {
        ConversionState.DEPENDENCIES_ADDED,
        ConversionState.PUSH_GUARD_EVALUATED,
    },
    ConversionState.DEPENDENCIES_ADDED: {
        ConversionState.DEPENDENCIES_ADDED,
        ConversionState.PUSH_GUARD_EVALUATED,
    },
    ConversionState.PUSH_GUARD_EVALUATED: {ConversionState.PUSHED, ConversionState.ABORTED},
    ConversionState.PUSHED: set(),
    ConversionState.ABORTED: set(),
}


def commit_message(package_name: str, constraint: str) -> str:
    return f"Add {package_name} ({constraint}) project to Composer"


class ConversionWorkflow(BaseWorkflow):
    """Converts a site's code into a Composer-managed branch and publishes it."""

    def __init__(
        self,
        *args,
        scanner: Callable[[Path], list[ContribProject]] = detect_contrib_projects,
        manifest_factory: Callable[[Path], ManifestEditor] = ComposerManifest,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.scanner = scanner
        self.manifest_factory = manifest_factory
        self.state = ConversionState.STARTED
        self._states: list[ConversionState] = []

    def run(self, site_id: str, branch: str | None = None) -> ConversionResult:
        """
        Convert a site.

        Args:
            site_id: Site name or UUID
            branch: Target branch name (default: git.target_branch)

        Returns:
            ConversionResult with outcome PUSHED or ABORTED
        """
        branch = branch or self.config.git.target_branch
        self.state = ConversionState.STARTED
        self._states = []
        self.log("conversion_started", {"site": site_id, "branch": branch})

        site = self.platform.get_site(site_id)
        if site.framework != DRUPAL8_FRAMEWORK:
            raise PreconditionError(f"The site {site.name} is not a Drupal 8 based site.")
        if site.upstream != self.config.upstreams.drops8:
            raise PreconditionError(
                f'The site {site.name} is not a "{self.config.upstreams.drops8}" upstream based site.'
            )

        connection = self.platform.resolve(site_id)
        source_path = self.clone(connection, "source")
        destination_path = self.clone(connection, "destination")
        self._advance(ConversionState.CLONED)

        self.notice(f"Detecting contrib modules and themes in {source_path}...")
        projects = self.scanner(source_path)
        if projects:
            self.notice(
                f"{len(projects)} contrib modules and/or themes are detected: "
                + ", ".join(str(p) for p in projects)
            )
        else:
            self.notice(f"No contrib modules or themes were detected in {source_path}")
        self._advance(ConversionState.COMPONENTS_DETECTED)

        self.notice(f'Checking out "{branch}" git branch...')
        git = self.open_repository(destination_path)
        git.create_and_checkout_branch(branch)
        self._advance(ConversionState.TARGET_BRANCH_CREATED)

        self.notice("Adding contrib projects to Composer...")
        manifest = self.manifest_factory(destination_path)
        packages: list[str] = []
        for project in projects:
            package_name = self.config.composer.package_name(project.name)
            constraint = self.config.composer.constraint(project.version)
            manifest.require(package_name, constraint)
            git.commit(commit_message(package_name, constraint))
            packages.append(f"{package_name}:{constraint}")
            self.notice(f"{package_name} ({constraint}) is added")
            self.log("project_added", {"package": package_name, "constraint": constraint})
            self._advance(ConversionState.DEPENDENCIES_ADDED)
        self.notice("Contrib projects have been added to Composer")

        override = True
        if git.is_remote_branch_exists(branch):
            override = self.approval.confirm(
                f'The branch "{branch}" already exists. Are you sure you want to override it?'
            )
        self._advance(ConversionState.PUSH_GUARD_EVALUATED)

        if not override:
            self.warning(f'Aborted: the branch "{branch}" was not pushed')
            return self._finish(Outcome.ABORTED, ConversionState.ABORTED, branch, projects, packages)

        self.notice(f'Pushing changes to "{branch}" git branch...')
        git.force_push(branch)
        self.notice("Done!")
        return self._finish(Outcome.PUSHED, ConversionState.PUSHED, branch, projects, packages)

    def _advance(self, state: ConversionState) -> None:
        if state not in _NEXT_STATES[self.state]:
            raise RuntimeError(f"Invalid conversion transition: {self.state.value} -> {state.value}")
        self.state = state
        self._states.append(state)
        self.log("state", {"state": state.value})

    def _finish(
        self,
        outcome: Outcome,
        state: ConversionState,
        branch: str,
        projects: list[ContribProject],
        packages: list[str],
    ) -> ConversionResult:
        self._advance(state)
        self.log("outcome", {"outcome": outcome.value, "branch": branch})
        return ConversionResult(
            outcome=outcome,
            branch=branch,
            projects=list(projects),
            packages=packages,
            states=list(self._states),
        )
