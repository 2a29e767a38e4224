"""
Inspect Command Module

Prints the metadata embedded in a policy, followed by its Sigstore
signatures when the registry publishes any.
"""

import asyncio
from typing import Optional

import structlog
from rich.console import Console
from rich.text import Text

from ..errors import MissingMetadataError
from ..fetcher.store import PolicyStore
from ..fetcher.uri import map_path_to_uri, wasm_path
from ..policy_metadata.extractor import extract_metadata
from ..registry.client import RegistryClient
from ..registry.config import DockerConfig, Sources
from ..rendering.formats import OutputFormat
from ..rendering.printers import render_metadata, render_signatures
from ..signatures.resolver import fetch_signatures_manifest

logger = structlog.get_logger(__name__)

SIGNATURES_TITLE = 'Sigstore signatures'


async def inspect(uri: str,
                  output_format: OutputFormat,
                  sources: Optional[Sources] = None,
                  docker_config: Optional[DockerConfig] = None,
                  store: Optional[PolicyStore] = None,
                  registry: Optional[RegistryClient] = None,
                  console: Optional[Console] = None) -> None:
    """
    Inspect a policy.

    The signature lookup runs while the metadata is read from the module;
    it never makes the command fail.

    Args:
        uri: Policy URI or path of a local module
        output_format: Report format
        sources: Transport settings used for the signature lookup
        docker_config: Registry credentials used for the signature lookup
        store: Store holding pulled policies
        registry: Registry client used for the signature lookup
        console: Console the report is printed on

    Raises:
        PolicyNotFoundError: the policy is not available locally
        InvalidMetadataError: the embedded metadata is malformed
        MissingMetadataError: the policy carries no metadata
    """
    console = console or Console()
    uri = map_path_to_uri(uri)
    path = wasm_path(uri, store or PolicyStore())

    signatures_task = asyncio.create_task(
        fetch_signatures_manifest(uri, sources, docker_config, registry)
    )
    try:
        metadata = await asyncio.to_thread(extract_metadata, path)
        if metadata is None:
            raise MissingMetadataError(uri)
    except BaseException:
        signatures_task.cancel()
        raise

    logger.debug('policy_metadata_loaded', uri=uri, execution_mode=str(metadata.execution_mode))
    render_metadata(metadata, output_format, console)

    signatures = await signatures_task
    if signatures is None:
        return

    if output_format == OutputFormat.HUMAN_READABLE:
        console.print()
        console.print(Text(SIGNATURES_TITLE))
        console.print()
    render_signatures(signatures, output_format, console)
