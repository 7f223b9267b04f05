"""Core data types for the conversion workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class ContribProject:
    """A contributed module or theme discovered in a site's source tree."""

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name} ({self.version})"


@dataclass(frozen=True)
class SiteInfo:
    """Platform metadata for a site."""

    id: str
    name: str
    framework: str
    upstream: str  # Upstream machine name, e.g. "drupal8"


@dataclass(frozen=True)
class SiteConnection:
    """Where a site's repository lives remotely and where to keep local copies."""

    site_id: str
    name: str
    git_url: str
    local_path: Path

    def local_copy(self, suffix: str) -> Path:
        """Path of a named local copy next to local_path, e.g. <name>_source."""
        return self.local_path.with_name(f"{self.name}_{suffix}")


class ConversionState(str, Enum):
    """Conversion workflow states, in the only order they may be visited."""

    STARTED = "started"
    CLONED = "cloned"
    COMPONENTS_DETECTED = "components_detected"
    TARGET_BRANCH_CREATED = "target_branch_created"
    DEPENDENCIES_ADDED = "dependencies_added"
    PUSH_GUARD_EVALUATED = "push_guard_evaluated"
    PUSHED = "pushed"
    ABORTED = "aborted"


class Outcome(str, Enum):
    """Terminal, non-error outcome of a workflow run."""

    PUSHED = "pushed"
    ABORTED = "aborted"
    RELEASED = "released"
    NOTHING_TO_RELEASE = "nothing_to_release"
    RESTORED = "restored"
    NOTHING_TO_RESTORE = "nothing_to_restore"
    DECLINED = "declined"


@dataclass
class ConversionResult:
    """Result of a conversion run."""

    outcome: Outcome
    branch: str
    projects: list[ContribProject] = field(default_factory=list)
    packages: list[str] = field(default_factory=list)  # "<vendor>/<name>:<constraint>"
    states: list[ConversionState] = field(default_factory=list)

    @property
    def pushed(self) -> bool:
        return self.outcome is Outcome.PUSHED


@dataclass
class ReleaseResult:
    """Result of releasing the target branch into the primary branch."""

    outcome: Outcome
    branch: str
    backup_created: bool = False


@dataclass
class RestoreResult:
    """Result of restoring the primary branch from its backup."""

    outcome: Outcome
    target_hash: str | None = None
    previous_hash: str | None = None


class PlatformClient(Protocol):
    """The subset of the hosting platform the workflows depend on."""

    def get_site(self, site_id: str) -> SiteInfo: ...

    def resolve(self, site_id: str) -> SiteConnection: ...

    def switch_upstream(self, site_id: str, upstream_id: str) -> None: ...

    def dashboard_url(self, site_id: str, env: str = "dev") -> str: ...


class ManifestEditor(Protocol):
    def require(self, package_name: str, version_constraint: str) -> None: ...
