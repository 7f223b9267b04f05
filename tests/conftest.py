"""Global pytest configuration and shared fakes for hermetic test runs."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest

from composerify.config import ConversionConfig
from composerify.types import SiteConnection, SiteInfo

SITE_UUID = "11111111-2222-3333-4444-555555555555"


def pytest_sessionstart(session):  # noqa: ARG001
    # Prevent accidental outbound network during tests.
    os.environ.setdefault("COMPOSERIFY_DISABLE_NETWORK", "1")


class FakeExecutor:
    """Scripted stand-in for SubprocessExecutor.

    Rules are matched by argv prefix (or string prefix for shell commands);
    the most recently added matching rule wins. Unmatched commands return "".
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list[str] | str, Path, str | None]] = []
        self._rules: list[tuple[tuple[str, ...], object]] = []

    def on(self, *prefix: str, output: object = "") -> FakeExecutor:
        self._rules.append((prefix, output))
        return self

    def run(self, command: list[str] | str, cwd: Path, stdin: str | None = None) -> str:
        self.calls.append((command, Path(cwd), stdin))
        for prefix, output in reversed(self._rules):
            if _matches(command, prefix):
                if isinstance(output, BaseException):
                    raise output
                if callable(output):
                    return output(command)
                return str(output)
        return ""

    @property
    def commands(self) -> list[list[str] | str]:
        return [c for c, _, _ in self.calls]

    def called(self, *prefix: str) -> bool:
        return any(_matches(c, prefix) for c in self.commands)

    def calls_to(self, *prefix: str) -> list[list[str] | str]:
        return [c for c in self.commands if _matches(c, prefix)]


def _matches(command: list[str] | str, prefix: tuple[str, ...]) -> bool:
    if isinstance(command, str):
        return command.startswith(" ".join(prefix))
    return tuple(command[: len(prefix)]) == prefix


class FakePlatform:
    """In-memory platform client."""

    def __init__(
        self,
        local_root: Path,
        git_url: str = "ssh://git.example.com/repository.git",
        framework: str = "drupal8",
        upstream: str = "drupal8",
    ) -> None:
        self.site = SiteInfo(id=SITE_UUID, name="mysite", framework=framework, upstream=upstream)
        self.git_url = git_url
        self.local_root = Path(local_root)
        self.switched: list[tuple[str, str]] = []

    def get_site(self, site_id: str) -> SiteInfo:
        return self.site

    def resolve(self, site_id: str) -> SiteConnection:
        return SiteConnection(
            site_id=self.site.id,
            name=self.site.name,
            git_url=self.git_url,
            local_path=self.local_root / self.site.name,
        )

    def switch_upstream(self, site_id: str, upstream_id: str) -> None:
        self.switched.append((site_id, upstream_id))

    def dashboard_url(self, site_id: str, env: str = "dev") -> str:
        return f"https://dashboard.example.com/sites/{site_id}#{env}"


class RecordingManifest:
    """Manifest editor that only records require() calls."""

    instances: list[RecordingManifest] = []

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.required: list[tuple[str, str]] = []
        RecordingManifest.instances.append(self)

    def require(self, package_name: str, version_constraint: str) -> None:
        self.required.append((package_name, version_constraint))


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def fake_platform(tmp_path: Path) -> FakePlatform:
    return FakePlatform(tmp_path / "local-copies")


@pytest.fixture
def config() -> ConversionConfig:
    config = ConversionConfig()
    # Keep tests hermetic: no persistent telemetry artifacts.
    config.telemetry.enabled = False
    return config


@pytest.fixture
def recording_manifest():
    RecordingManifest.instances = []
    return RecordingManifest


@pytest.fixture
def git_identity(monkeypatch):
    """Commit identity for git subprocesses spawned by the code under test."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")


def git(cwd: Path, *args: str) -> str:
    res = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return res.stdout


@pytest.fixture
def git_repo(tmp_path, git_identity):
    """A non-bare repository on branch master with one commit."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/master")
    (repo / "a.txt").write_text("alpha\nbeta\ngamma\n")
    git(repo, "add", ".")
    git(repo, "commit", "-m", "Initial commit")
    return repo


@pytest.fixture
def bare_remote(tmp_path, git_identity):
    """A bare remote whose master holds a small Drupal 8 site."""
    seed = tmp_path / "seed"
    seed.mkdir()
    git(seed, "init")
    git(seed, "symbolic-ref", "HEAD", "refs/heads/master")
    (seed / "composer.json").write_text('{\n    "name": "pantheon-systems/example-drops-8",\n    "require": {}\n}\n')
    info_dir = seed / "modules" / "contrib" / "webform"
    info_dir.mkdir(parents=True)
    (info_dir / "webform.info.yml").write_text(
        "name: Webform\ntype: module\ncore: 8.x\nproject: 'webform'\nversion: '6.2.0'\n"
    )
    git(seed, "add", ".")
    git(seed, "commit", "-m", "Initial site")

    remote = tmp_path / "remote.git"
    git(tmp_path, "clone", "--bare", str(seed), str(remote))
    return remote


@pytest.fixture
def run_git():
    return git


@pytest.fixture
def make_platform(tmp_path):
    def _make(**kwargs) -> FakePlatform:
        return FakePlatform(tmp_path / "local-copies", **kwargs)

    return _make
