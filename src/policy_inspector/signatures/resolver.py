"""
Signature Resolver Module

Discovers the Sigstore signature manifest published next to a policy.
Signatures only enrich the inspection report: any failure means "no
signature" and is never reported as an error.
"""

import asyncio
from typing import Any, Callable, Optional

import structlog

from ..registry.client import RegistryClient
from ..registry.config import DockerConfig, Sources
from ..registry.manifest import ImageManifest
from .reference import get_signature_reference

logger = structlog.get_logger(__name__)


async def _best_effort(step: str, operation: Callable[..., Any], *args: Any) -> Optional[Any]:
    """Run a blocking registry call in a worker thread; failures become None."""
    try:
        return await asyncio.to_thread(operation, *args)
    except Exception as e:
        logger.debug('signature_lookup_failed', step=step, error=str(e))
        return None


async def fetch_signatures_manifest(uri: str,
                                    sources: Optional[Sources] = None,
                                    docker_config: Optional[DockerConfig] = None,
                                    registry: Optional[RegistryClient] = None
                                    ) -> Optional[ImageManifest]:
    """
    Fetch the signature manifest of an artifact, if there is one.

    Args:
        uri: Artifact reference
        sources: Transport settings
        docker_config: Registry credentials
        registry: Client to use; built from docker_config when omitted

    Returns:
        The signature image manifest, or None when it cannot be found
    """
    registry = registry or RegistryClient(docker_config)

    digest = await _best_effort('manifest_digest', registry.manifest_digest, uri, sources)
    if digest is None:
        return None

    signature_url = get_signature_reference(uri, digest)
    if signature_url is None:
        logger.debug('signature_reference_unavailable', uri=uri)
        return None

    manifest = await _best_effort('manifest', registry.manifest, signature_url, sources)
    if not isinstance(manifest, ImageManifest):
        logger.debug('signature_manifest_not_found', reference=signature_url)
        return None

    logger.debug('signature_manifest_found', reference=signature_url, layers=len(manifest.layers))
    return manifest
