"""Detection of contributed Drupal projects in a site's source tree.

Drupal.org packaging adds `project` and `version` keys to each module's or
theme's `.info.yml`. A file whose `project` equals its own basename is the
project's main extension; any other file is a submodule and is skipped.
"""

from __future__ import annotations

import re
from pathlib import Path

import yaml

from .types import ContribProject

SEARCH_DIRS = ["modules", "themes", "sites/all/modules", "sites/all/themes"]

# "8.x-6.2" -> "6.2"
_CORE_PREFIX_RE = re.compile(r"^\d+\.x-")


def normalize_version(version: str) -> str:
    return _CORE_PREFIX_RE.sub("", version.strip())


def detect_contrib_projects(root: Path | str) -> list[ContribProject]:
    """
    Scan a working copy for contributed modules and themes.

    Args:
        root: Site working copy

    Returns:
        Projects in discovery order, one per project name
    """
    root = Path(root)
    projects: list[ContribProject] = []
    seen: set[str] = set()

    for search_dir in SEARCH_DIRS:
        base = root / search_dir
        if not base.is_dir():
            continue
        for info_file in sorted(base.rglob("*.info.yml")):
            project = _read_project(info_file)
            if project is None or project.name in seen:
                continue
            seen.add(project.name)
            projects.append(project)

    return projects


def _read_project(info_file: Path) -> ContribProject | None:
    try:
        data = yaml.safe_load(info_file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError):
        return None
    if not isinstance(data, dict):
        return None

    name = data.get("project")
    version = data.get("version")
    if not name or not version:
        return None
    if str(name) != info_file.name[: -len(".info.yml")]:
        return None

    return ContribProject(name=str(name), version=normalize_version(str(version)))
