"""Plumbing shared by the conversion, release and restore workflows."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any

import click

from .approval import ApprovalHandler
from .config import ConversionConfig
from .executor import CommandExecutor, SubprocessExecutor
from .git_ops import Git, clone_repository
from .telemetry import TelemetrySink, disabled_sink
from .types import PlatformClient, SiteConnection


class BaseWorkflow:
    """Holds collaborators, a per-run id and the operator/telemetry output."""

    def __init__(
        self,
        config: ConversionConfig,
        platform: PlatformClient,
        approval: ApprovalHandler,
        executor: CommandExecutor | None = None,
        telemetry: TelemetrySink | None = None,
    ):
        self.config = config
        self.platform = platform
        self.approval = approval
        self.executor = executor or SubprocessExecutor(config.git.timeout_seconds)
        if telemetry is None:
            if config.telemetry.enabled:
                telemetry = TelemetrySink(enabled=True, path=config.telemetry.path)
            else:
                telemetry = disabled_sink()
        self.telemetry = telemetry
        self.run_id = uuid.uuid4().hex

    def clone(self, connection: SiteConnection, suffix: str) -> Path:
        path = connection.local_copy(suffix)
        self.notice(f'Cloning {connection.name} site repository into "{path}"...')
        clone_repository(connection.git_url, path, self.executor)
        self.notice(f'The {connection.name} site repository has been cloned into "{path}"')
        return path

    def open_repository(self, path: Path) -> Git:
        return Git(path, executor=self.executor, remote=self.config.git.remote)

    def notice(self, message: str) -> None:
        click.echo(message)

    def warning(self, message: str) -> None:
        click.secho(message, fg="yellow")

    def log(self, event_type: str, data: dict[str, Any]) -> None:
        self.telemetry.log(self.run_id, event_type, data)
