"""
Command-line interface for fleetclone.

Provides commands for listing and cloning every project visible on a
GitLab instance.
"""

import sys
from pathlib import Path

import click

from fleetclone import __version__
from fleetclone.core.config import CloneMethod, Config
from fleetclone.core.exceptions import ConfigurationError, EnumerationError
from fleetclone.utils.logging_config import setup_logging
from fleetclone.utils.validation import validate_root_dir, validate_url


def _fail(ctx, message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    if ctx.obj.get("verbose"):
        import traceback
        traceback.print_exc()
    sys.exit(1)


def _directory_options(func):
    """Options shared by every command that talks to the API."""
    func = click.option(
        "--token", "-t",
        help="API token (default: $GITLAB_TOKEN)"
    )(func)
    func = click.option(
        "--url", "-u",
        help="Base URL of the GitLab instance (default: $GITLAB_URL or https://gitlab.com)"
    )(func)
    return func


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output"
)
@click.option(
    "--log-file",
    type=click.Path(),
    help="Path to log file"
)
@click.option(
    "--config", "config_path",
    type=click.Path(),
    help="JSON configuration file"
)
@click.pass_context
def cli(ctx, verbose, log_file, config_path):
    """
    fleetclone

    Mirror every project of a GitLab instance to local disk,
    cloning many repositories at once.
    """
    ctx.ensure_object(dict)

    try:
        if config_path:
            Config.load_from_file(config_path)
        config = Config.load_from_env()
    except ConfigurationError as e:
        _fail(ctx, str(e))

    config.verbose = config.verbose or verbose
    ctx.obj["verbose"] = config.verbose
    ctx.obj["config"] = config

    log_level = "DEBUG" if config.verbose else "INFO"
    setup_logging(level=log_level, log_file=Path(log_file) if log_file else None)


def _apply_directory_options(ctx, url, token):
    config = ctx.obj["config"]
    if url:
        config.directory.base_url = url
    if token:
        config.directory.token = token

    is_valid, error = validate_url(config.directory.base_url)
    if not is_valid:
        _fail(ctx, error)
    return config


@cli.command()
@_directory_options
@click.option(
    "--method", "-m",
    type=click.Choice([m.value for m in CloneMethod]),
    help="Clone protocol (default: https)"
)
@click.option(
    "--dir", "-d", "root_dir",
    type=click.Path(file_okay=False),
    help="Root directory for clones (default: ./repos)"
)
@click.option(
    "--workers", "-w",
    type=click.IntRange(min=1),
    help="Number of concurrent clones (default: 8)"
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored status lines"
)
@click.pass_context
def clone(ctx, url, token, method, root_dir, workers, no_color):
    """
    Clone every visible project.

    Projects are placed under DIR by their namespace path. Per-project
    failures are reported and counted; they do not abort the run.

    Examples:

        fleetclone clone --url https://gitlab.example.com -d ~/mirror

        fleetclone clone -m ssh -w 16
    """
    config = _apply_directory_options(ctx, url, token)
    if method:
        config.clone.clone_method = method
    if root_dir:
        config.clone.root_dir = root_dir
    if workers:
        config.scheduler.worker_count = workers

    is_valid, error = validate_root_dir(config.clone.root_dir)
    if not is_valid:
        _fail(ctx, error)

    from fleetclone.engine import FleetCloneEngine

    try:
        engine = FleetCloneEngine(config, color=not no_color)
        click.echo(f"Cloning projects from {config.directory.base_url} into {engine.clone_task.root_dir}")
        click.echo()
        engine.run()
    except (ConfigurationError, EnumerationError) as e:
        _fail(ctx, str(e))


@cli.command(name="list")
@_directory_options
@click.pass_context
def list_command(ctx, url, token):
    """
    List every visible project without cloning.

    Prints one line per project: id and namespace path.
    """
    config = _apply_directory_options(ctx, url, token)

    from fleetclone.engine import FleetCloneEngine

    count = 0
    try:
        engine = FleetCloneEngine(config)
        for project in engine.list_projects():
            click.echo(f"{project.id}\t{project.path_with_namespace}")
            count += 1
    except (ConfigurationError, EnumerationError) as e:
        _fail(ctx, str(e))

    click.echo(f"{count} projects", err=True)


@cli.command()
@click.option(
    "--output", "-o",
    type=click.Path(),
    default="config.json",
    help="Output path for configuration file"
)
def init(output):
    """
    Initialize configuration file.

    Creates a default configuration file that can be customized.
    The API token is never written; pass it with $GITLAB_TOKEN.
    """
    Config.save_to_file(output)
    click.echo(f"Configuration saved to: {output}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
