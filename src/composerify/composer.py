"""composer.json editing."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

MANIFEST_NAME = "composer.json"


class ComposerManifest:
    """Adds `require` entries to the composer.json of a working copy."""

    def __init__(self, root: Path | str):
        self.path = Path(root) / MANIFEST_NAME

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def require(self, package_name: str, version_constraint: str) -> None:
        """Add or update one dependency entry and write the manifest back."""
        data = self.load()
        requirements = data.setdefault("require", {})
        requirements[package_name] = version_constraint

        self.path.write_text(
            json.dumps(data, indent=4, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )

    def requirements(self) -> dict[str, str]:
        return dict(self.load().get("require", {}))
