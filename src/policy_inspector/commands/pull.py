"""
Pull Command Module
"""

import asyncio
from pathlib import Path
from typing import Optional, Union

import click

from ..fetcher.pull import PullDestination, pull
from ..fetcher.store import PolicyStore
from ..fetcher.uri import map_path_to_uri
from ..registry.config import DockerConfig, Sources


async def pull_policy(uri: str,
                      docker_config: Optional[DockerConfig] = None,
                      sources: Optional[Sources] = None,
                      output_path: Optional[Union[str, Path]] = None,
                      store: Optional[PolicyStore] = None) -> Path:
    """Pull a policy into the store, or into output_path when given."""
    uri = map_path_to_uri(uri)
    destination = PullDestination.LOCAL_FILE if output_path else PullDestination.MAIN_STORE
    path = await asyncio.to_thread(
        pull, uri, docker_config, sources, destination, output_path, store
    )
    click.echo(f"Policy {uri} pulled to {path}")
    return path
