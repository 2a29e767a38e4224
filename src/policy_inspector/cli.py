"""
Command line interface.

    policy-inspector inspect registry://ghcr.io/kubewarden/policies/pod-privileged:v0.1.9
    policy-inspector inspect -o yaml ./policy.wasm
    policy-inspector pull registry://ghcr.io/kubewarden/policies/pod-privileged:v0.1.9
    policy-inspector run --request-path request.json registry://...
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
import structlog

from . import __version__, config
from .commands import inspect as inspect_command
from .commands import pull_and_run, pull_policy
from .errors import OutputFormatError, PolicyInspectorError
from .evaluation.request import parse_settings
from .fetcher.store import PolicyStore
from .logging_config import setup_logging
from .registry.config import DockerConfig, Sources, read_sources_file
from .rendering.formats import OutputFormat

logger = structlog.get_logger(__name__)


def _load_sources(sources_path: Optional[str]) -> Optional[Sources]:
    path = Path(sources_path) if sources_path else config.default_sources_path()
    if path is None:
        return None
    return read_sources_file(path)


def _load_docker_config(docker_config_path: Optional[str]) -> Optional[DockerConfig]:
    if docker_config_path:
        path = Path(docker_config_path)
        if path.is_dir():
            path = path / 'config.json'
    else:
        path = config.default_docker_config_path()
    if path is None:
        return None
    return DockerConfig.from_file(path)


def _load_store(store_path: Optional[str]) -> PolicyStore:
    return PolicyStore(store_path) if store_path else PolicyStore()


def _run(coroutine):
    try:
        return asyncio.run(coroutine)
    except PolicyInspectorError as e:
        logger.debug('command_failed', error_type=type(e).__name__)
        raise click.ClickException(str(e)) from e


sources_option = click.option(
    '--sources-path', default=None,
    type=click.Path(dir_okay=False), help='YAML file holding insecure sources and authorities'
)
docker_config_option = click.option(
    '--docker-config-json-path', default=None,
    type=click.Path(), help='Docker config.json, or the directory holding it'
)
store_option = click.option(
    '--store-path', default=None,
    type=click.Path(file_okay=False), help='Root of the local policy store'
)


@click.group()
@click.version_option(__version__, prog_name='policy-inspector')
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
def cli(verbose: bool) -> None:
    """Inspect, pull and run policies distributed through OCI registries."""
    setup_logging(level='debug' if verbose else None)


@cli.command()
@click.argument('uri')
@click.option('-o', '--output', 'output', default=None, help='Output format: yaml or pretty')
@sources_option
@docker_config_option
@store_option
def inspect(uri: str,
            output: Optional[str],
            sources_path: Optional[str],
            docker_config_json_path: Optional[str],
            store_path: Optional[str]) -> None:
    """Print the metadata and the signatures of a policy."""
    try:
        output_format = OutputFormat.from_option(output)
    except OutputFormatError as e:
        raise click.BadParameter(str(e), param_hint="'--output'") from e

    try:
        sources = _load_sources(sources_path)
        docker_config = _load_docker_config(docker_config_json_path)
    except PolicyInspectorError as e:
        raise click.ClickException(str(e)) from e

    _run(inspect_command(
        uri,
        output_format,
        sources=sources,
        docker_config=docker_config,
        store=_load_store(store_path),
    ))


@cli.command()
@click.argument('uri')
@click.option('-o', '--output-path', default=None, type=click.Path(dir_okay=False),
              help='Write the policy to this file instead of the store')
@sources_option
@docker_config_option
@store_option
def pull(uri: str,
         output_path: Optional[str],
         sources_path: Optional[str],
         docker_config_json_path: Optional[str],
         store_path: Optional[str]) -> None:
    """Download a policy."""
    try:
        sources = _load_sources(sources_path)
        docker_config = _load_docker_config(docker_config_json_path)
    except PolicyInspectorError as e:
        raise click.ClickException(str(e)) from e

    _run(pull_policy(uri, docker_config, sources, output_path, _load_store(store_path)))


@cli.command()
@click.argument('uri')
@click.option('-r', '--request-path', required=True, type=click.File('r'),
              help="File holding the request to evaluate, '-' for stdin")
@click.option('--settings-path', default=None, type=click.File('r'),
              help='YAML or JSON file holding the policy settings')
@click.option('--settings-json', default=None, help='Policy settings as a JSON string')
@click.option('--evaluator-command', default=None,
              help='Command evaluating the policy')
@sources_option
@docker_config_option
@store_option
def run(uri: str,
        request_path,
        settings_path,
        settings_json: Optional[str],
        evaluator_command: Optional[str],
        sources_path: Optional[str],
        docker_config_json_path: Optional[str],
        store_path: Optional[str]) -> None:
    """Evaluate a policy against a request."""
    if settings_path is not None and settings_json is not None:
        raise click.UsageError('--settings-path and --settings-json are mutually exclusive')

    request = request_path.read()
    raw_settings = settings_path.read() if settings_path is not None else settings_json

    try:
        settings = parse_settings(raw_settings)
        sources = _load_sources(sources_path)
        docker_config = _load_docker_config(docker_config_json_path)
    except PolicyInspectorError as e:
        raise click.ClickException(str(e)) from e

    _run(pull_and_run(
        uri,
        request,
        docker_config=docker_config,
        sources=sources,
        settings=settings,
        evaluator_command=evaluator_command,
        store=_load_store(store_path),
    ))


@cli.command()
@store_option
def policies(store_path: Optional[str]) -> None:
    """List the policies in the local store."""
    for uri in _load_store(store_path).list_policies():
        click.echo(uri)


@cli.command()
@click.argument('uri')
@store_option
def rm(uri: str, store_path: Optional[str]) -> None:
    """Remove a policy from the local store."""
    try:
        removed = _load_store(store_path).remove(uri)
    except PolicyInspectorError as e:
        raise click.ClickException(str(e)) from e
    if not removed:
        raise click.ClickException(f"Cannot find policy '{uri}' inside of the local store")


def main() -> None:
    cli(prog_name='policy-inspector')


if __name__ == '__main__':
    sys.exit(main())
