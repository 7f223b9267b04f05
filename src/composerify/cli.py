"""Command-line interface for composerify.

Commands:
- composerify convert <site_id>: Build and push the Composer-managed branch
- composerify release <site_id>: Release the converted branch to the primary branch
- composerify restore <site_id>: Reset the primary branch to its backup
"""

from __future__ import annotations

from pathlib import Path

import click
import yaml

from . import __version__
from .approval import AlwaysApproveHandler, ApprovalHandler
from .config import ConversionConfig, load_config
from .conversion import ConversionWorkflow
from .errors import ConversionError
from .executor import SubprocessExecutor
from .platform import PantheonClient
from .release import ReleaseWorkflow
from .restore import RestoreWorkflow
from .types import Outcome


def _load(config_path: str | None) -> ConversionConfig:
    try:
        if config_path:
            config = ConversionConfig.load_from_file(config_path)
            config.apply_env_overrides()
            return config
        return load_config(Path.cwd())
    except (ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e


def _collaborators(config: ConversionConfig, yes: bool) -> dict:
    approval: ApprovalHandler
    if yes:
        approval = AlwaysApproveHandler()
    else:
        approval = ApprovalHandler(interactive=True)
    return {
        "config": config,
        "platform": PantheonClient(config.platform),
        "approval": approval,
        "executor": SubprocessExecutor(config.git.timeout_seconds),
    }


def _report(outcome: Outcome) -> None:
    click.echo(f"Outcome: {outcome.value}")


@click.group()
@click.version_option(version=__version__, prog_name="composerify")
def cli() -> None:
    """Composerify - convert platform-upstream Drupal sites to Composer."""
    pass


@cli.command()
@click.argument("site_id")
@click.option("--branch", "-b", default=None, help="Target git branch (default: composerify)")
@click.option("--yes", "-y", is_flag=True, help="Answer yes to every confirmation")
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
def convert(site_id: str, branch: str | None, yes: bool, config: str | None) -> None:
    """Convert a standard Drupal 8 site into a Composer-managed branch.

    Example:
        composerify convert my-site
        composerify convert my-site --branch=composerify-test --yes
    """
    conversion_config = _load(config)
    workflow = ConversionWorkflow(**_collaborators(conversion_config, yes))
    try:
        result = workflow.run(site_id, branch=branch)
    except ConversionError as e:
        raise click.ClickException(str(e)) from e
    _report(result.outcome)


@cli.command()
@click.argument("site_id")
@click.option("--branch", "-b", default=None, help="Converted git branch (default: composerify)")
@click.option("--yes", "-y", is_flag=True, help="Answer yes to every confirmation")
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
def release(site_id: str, branch: str | None, yes: bool, config: str | None) -> None:
    """Release the converted branch to the primary branch, keeping a backup.

    Example:
        composerify release my-site --branch=composerify
    """
    conversion_config = _load(config)
    workflow = ReleaseWorkflow(**_collaborators(conversion_config, yes))
    try:
        result = workflow.run(site_id, branch=branch)
    except ConversionError as e:
        raise click.ClickException(str(e)) from e
    _report(result.outcome)


@cli.command()
@click.argument("site_id")
@click.option("--yes", "-y", is_flag=True, help="Answer yes to every confirmation")
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
def restore(site_id: str, yes: bool, config: str | None) -> None:
    """Restore the primary branch to the state before the conversion.

    Example:
        composerify restore my-site
    """
    conversion_config = _load(config)
    workflow = RestoreWorkflow(**_collaborators(conversion_config, yes))
    try:
        result = workflow.run(site_id)
    except ConversionError as e:
        raise click.ClickException(str(e)) from e
    _report(result.outcome)


if __name__ == "__main__":
    cli()
