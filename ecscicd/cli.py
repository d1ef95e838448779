#!/usr/bin/env python3

import click

from ecscicd import __version__
from ecscicd.cli_utils import standard_command, add_common_options
from ecscicd.config import configure_logging, load_config
from ecscicd.infra.git_client import GitClient
from ecscicd.infra.marker_store import MarkerStore
from ecscicd.services.pipeline_service import PipelineService


@click.group()
@click.version_option(version=__version__, prog_name="ecscicd")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False),
              help='Config file (JSON, TOML or YAML). Defaults to $ECSCICD_CONFIG.')
@click.option('-v', '--verbose', is_flag=True, help='Log every external command')
@click.pass_context
def cli(ctx, config_path, verbose):
    """ecscicd - Build and push an image to ECR when a branch moves.

    Settings come from PROJECT, BRANCH, PAT_TOKEN, ECR and
    AWS_DEFAULT_REGION (or ECSCICD_* overrides and an optional config file).
    Run it from a scheduler; each invocation builds at most once.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['verbose'] = verbose
    configure_logging("DEBUG" if verbose else "INFO")


def _load(ctx, **overrides):
    config = load_config(ctx.obj.get('config_path'), overrides=overrides)
    configure_logging("DEBUG" if ctx.obj.get('verbose') else config.log_level)
    return config


@cli.command('run')
@click.option('--push-latest/--no-push-latest', default=None,
              help='Also push the latest alias tag (default: config push_latest)')
@add_common_options('json', 'pretty')
@click.pass_context
@standard_command()
def run_handler(ctx, push_latest, as_json, pretty):
    """Check for a new commit and, if there is one, build and push it."""
    config = _load(ctx, push_latest=push_latest)
    return PipelineService(config).run()


@cli.command('check')
@add_common_options('json', 'pretty')
@click.pass_context
@standard_command()
def check_handler(ctx, as_json, pretty):
    """Clone or fetch and report whether a build is required."""
    config = _load(ctx)
    return PipelineService(config).check()


@cli.command('status')
@add_common_options('pretty')
@click.pass_context
@standard_command()
def status_handler(ctx, pretty):
    """Show the working copy, its marker and its checked-out commit."""
    config = _load(ctx)
    repo = config.repository
    git = GitClient(timeout=config.command_timeout)

    exists = repo.path.exists()
    is_repo = exists and git.is_git_repo(repo.path)
    return {
        'repository': repo.full_name,
        'branch': repo.branch,
        'path': str(repo.path),
        'exists': exists,
        'marker': MarkerStore().read(repo.path) if exists else None,
        'head': git.head(repo.path) if is_repo else None,
        'registry': config.registry,
    }


@cli.group('config')
def config_cmd():
    """Inspect configuration."""
    pass


@config_cmd.command('show')
@click.pass_context
@standard_command()
def config_show(ctx):
    """Print the resolved configuration with the token masked."""
    return _load(ctx).to_dict(redact=True)


def main():
    cli()


if __name__ == "__main__":
    main()
