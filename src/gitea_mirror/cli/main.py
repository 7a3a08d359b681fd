"""Main CLI entry point for gitea-mirror."""

import sys
from typing import Optional
from pathlib import Path

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..api.exceptions import ConfigurationError, MirrorError
from ..config.config import VISIBILITIES, Config, create_template
from ..migration.engine import MirrorEngine
from ..migration.orchestrator import MirrorMode, MirrorPlan, MirrorSummary
from ..utils.logging import setup_logging

console = Console()
err_console = Console(stderr=True)

DEFAULT_CONFIG_PATHS = ['config.yaml', 'config.yml', '.gitea-mirror.yaml']


@click.group()
@click.version_option(version=__version__, prog_name='gitea-mirror')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """gitea-mirror - Mirror GitHub repositories into a Gitea instance."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    # Basic logging until the configuration is loaded
    setup_logging('DEBUG' if verbose else 'INFO')


_MIRROR_OPTIONS = [
    click.option('--issues', is_flag=True, help='Migrate issues'),
    click.option('--pull-requests', is_flag=True, help='Migrate pull requests'),
    click.option('--releases', is_flag=True, help='Migrate releases'),
    click.option('--labels', is_flag=True, help='Migrate labels'),
    click.option('--milestones', is_flag=True, help='Migrate milestones'),
    click.option('--lfs', is_flag=True, help='Mirror Git LFS objects'),
    click.option('--lfs-endpoint', default=None, help='Custom LFS server URL'),
    click.option(
        '--dry-run',
        is_flag=True,
        help='Log migration requests without creating anything',
    ),
]


def mirror_options(func):
    """Options shared by every mirror command."""
    for option in reversed(_MIRROR_OPTIONS):
        func = option(func)
    return func


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
def init(output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]gitea-mirror[/bold green]\nInitializing configuration...',
            border_style='green',
        )
    )

    try:
        create_template(output)

        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your GitHub and Gitea details[/yellow]'
        )

    except OSError as e:
        err_console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the effective configuration."""
    try:
        config = _load_config(ctx)
    except (ConfigurationError, OSError) as e:
        err_console.print(f'[red]✗[/red] Failed to load configuration: {e}')
        sys.exit(1)

    table = Table(title='Mirror Configuration')
    table.add_column('Setting', style='cyan')
    table.add_column('Value', style='green')

    options = config.mirror.options
    table.add_row('GitHub API', config.github.url)
    table.add_row('GitHub User', config.github.username or '-')
    table.add_row('GitHub Token', _mask(config.github.token))
    table.add_row('Gitea URL', config.gitea.url)
    table.add_row('Gitea Token', _mask(config.gitea.token))
    table.add_row('Org Visibility', config.mirror.visibility)
    for name in ('issues', 'pull_requests', 'releases', 'labels', 'milestones', 'lfs'):
        table.add_row(f'Migrate {name}', '✓' if getattr(options, name) else '✗')
    table.add_row(
        'Retry',
        f'{config.retry.max_attempts} attempts, '
        f'{config.retry.initial_delay:g}s..{config.retry.max_delay:g}s',
    )

    console.print(table)


@cli.command()
@click.argument('org')
@click.option('--dest-org', default=None, help='Gitea organization (default: ORG)')
@click.option(
    '--visibility',
    type=click.Choice(VISIBILITIES),
    default=None,
    help='Visibility of the Gitea organization if it is created',
)
@mirror_options
@click.pass_context
def org(ctx: click.Context, org: str, dest_org: Optional[str], visibility, **options):
    """Mirror every repository of a GitHub organization."""
    plan = MirrorPlan(mode=MirrorMode.ORG, target=org, dest_org=dest_org)
    _run(ctx, plan, options, visibility=visibility)


@cli.command()
@click.argument('user')
@click.option('--dest-owner', default=None, help='Gitea user (default: USER)')
@click.option('--dest-org', default=None, help='Gitea organization instead of a user')
@mirror_options
@click.pass_context
def user(ctx: click.Context, user: str, dest_owner, dest_org, **options):
    """Mirror every repository owned by a GitHub user."""
    plan = MirrorPlan(
        mode=MirrorMode.USER, target=user, dest_owner=dest_owner, dest_org=dest_org
    )
    _run(ctx, plan, options)


@cli.command()
@click.argument('user')
@click.option('--dest-owner', default=None, help='Gitea user (default: USER)')
@click.option('--dest-org', default=None, help='Gitea organization instead of a user')
@mirror_options
@click.pass_context
def star(ctx: click.Context, user: str, dest_owner, dest_org, **options):
    """Mirror every repository starred by a GitHub user."""
    plan = MirrorPlan(
        mode=MirrorMode.STAR, target=user, dest_owner=dest_owner, dest_org=dest_org
    )
    _run(ctx, plan, options)


@cli.command()
@click.argument('url')
@click.option(
    '--dest-owner', default=None, help='Gitea owner (default: the GitHub owner)'
)
@mirror_options
@click.pass_context
def repo(ctx: click.Context, url: str, dest_owner, **options):
    """Mirror a single GitHub repository."""
    plan = MirrorPlan(mode=MirrorMode.REPO, target=url, dest_owner=dest_owner)
    _run(ctx, plan, options)


def _run(
    ctx: click.Context,
    plan: MirrorPlan,
    options: dict,
    visibility: Optional[str] = None,
) -> None:
    """Load configuration, apply command line overrides and run the engine."""
    try:
        config = _load_config(ctx)
        config = _apply_overrides(config, options, visibility)
        _setup_logging_with_config(ctx, config)

        summary = MirrorEngine(config).run(plan)

    except ConfigurationError as e:
        err_console.print(f'[red]✗[/red] Configuration error: {e}')
        sys.exit(1)
    except MirrorError as e:
        err_console.print(f'[red]✗[/red] Mirror failed: {e}')
        if ctx.obj.get('verbose'):
            err_console.print_exception()
        sys.exit(1)

    _display_summary(summary)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    try:
        if config_path:
            return Config.from_file(config_path)

        for path in DEFAULT_CONFIG_PATHS:
            if Path(path).exists():
                return Config.from_file(path)

        return Config.from_env()

    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(str(e)) from e


def _apply_overrides(
    config: Config, options: dict, visibility: Optional[str]
) -> Config:
    """Turn on the features requested on the command line."""
    feature_flags = {
        name: True
        for name in ('issues', 'pull_requests', 'releases', 'labels', 'milestones', 'lfs')
        if options.get(name)
    }
    if options.get('lfs_endpoint'):
        feature_flags['lfs_endpoint'] = options['lfs_endpoint']

    data = config.model_dump()
    data['mirror']['options'].update(feature_flags)
    if options.get('dry_run'):
        data['mirror']['dry_run'] = True
    if visibility:
        data['mirror']['visibility'] = visibility

    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)

    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(
        level=log_level,
        log_file=config.logging.file,
        log_format=config.logging.format,
    )


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item['loc'])
        problems.append(f'{location}: {item["msg"]}')
    return '; '.join(problems)


def _mask(secret: Optional[str]) -> str:
    if not secret:
        return '-'
    return secret[:4] + '…' if len(secret) > 8 else '****'


def _display_summary(summary: MirrorSummary) -> None:
    """Display mirror summary results."""
    table = Table(title='Mirror Summary')
    table.add_column('Mode', style='cyan')
    table.add_column('Owner', style='blue')
    table.add_column('Fetched', style='blue')
    table.add_column('Created', style='green')
    table.add_column('Existing', style='yellow')

    table.add_row(
        summary.mode.value,
        summary.owner or '-',
        str(summary.fetched),
        str(summary.created),
        str(summary.existing),
    )
    console.print(table)

    if summary.dry_run:
        console.print(
            f'[yellow]Dry run: {summary.dry_run} requests logged, nothing created[/yellow]'
        )

    if summary.completed_at:
        duration = summary.completed_at - summary.started_at
        console.print(f'[blue]Duration:[/blue] {duration}')


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        err_console.print('\n[red]Mirror interrupted by user[/red]')
        sys.exit(1)
