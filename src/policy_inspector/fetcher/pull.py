"""
Policy Fetcher Module

Downloads policies from registries and web servers into the local store or
to an explicit file.
"""

import hashlib
import os
from enum import Enum
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import requests
import structlog

from .. import config
from ..errors import PolicyNotFoundError, RegistryError
from ..registry.client import RegistryClient
from ..registry.config import DockerConfig, Sources
from ..registry.manifest import WASM_LAYER_MEDIA_TYPE, Descriptor, ImageManifest
from .store import PolicyStore
from .uri import local_path

logger = structlog.get_logger(__name__)


class PullDestination(Enum):
    MAIN_STORE = 'main_store'
    LOCAL_FILE = 'local_file'


def select_wasm_layer(manifest: ImageManifest) -> Descriptor:
    """
    Pick the layer holding the WebAssembly module of a policy.

    Raises:
        RegistryError: the manifest has no unambiguous module layer
    """
    for layer in manifest.layers:
        if layer.media_type == WASM_LAYER_MEDIA_TYPE:
            return layer
    if len(manifest.layers) == 1:
        return manifest.layers[0]
    raise RegistryError(
        f"Cannot find a layer of type {WASM_LAYER_MEDIA_TYPE} "
        f"among {len(manifest.layers)} layers"
    )


def _download_http(uri: str, destination: Path, sources: Sources, timeout: float) -> Path:
    host = urlparse(uri).netloc
    verify: Union[bool, str] = True
    if sources.is_insecure_source(host):
        verify = False
    else:
        bundle = sources.certificate_bundle(host)
        if bundle:
            verify = bundle

    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_name(destination.name + '.partial')
    try:
        with requests.get(uri, stream=True, verify=verify, timeout=timeout) as response:
            if response.status_code >= 400:
                raise PolicyNotFoundError(f"Cannot download {uri}: HTTP {response.status_code}")
            with open(partial, 'wb') as f:
                for chunk in response.iter_content(chunk_size=8192):
                    f.write(chunk)
    except requests.exceptions.RequestException as e:
        partial.unlink(missing_ok=True)
        raise PolicyNotFoundError(f"Cannot download {uri}: {e}") from e
    except BaseException:
        partial.unlink(missing_ok=True)
        raise

    os.replace(partial, destination)
    return destination


def _download_registry(uri: str,
                       destination: Path,
                       sources: Sources,
                       registry: RegistryClient) -> Path:
    manifest = registry.manifest(uri, sources)
    if not isinstance(manifest, ImageManifest):
        raise RegistryError(f"{uri} points to an image index, not to a policy")
    layer = select_wasm_layer(manifest)
    return registry.pull_blob(uri, layer.digest, destination, sources)


def pull(uri: str,
         docker_config: Optional[DockerConfig] = None,
         sources: Optional[Sources] = None,
         destination: PullDestination = PullDestination.MAIN_STORE,
         output_path: Optional[Union[str, Path]] = None,
         store: Optional[PolicyStore] = None,
         registry: Optional[RegistryClient] = None) -> Path:
    """
    Fetch a policy.

    Args:
        uri: Policy URI (``file://``, ``http(s)://`` or ``registry://``)
        docker_config: Registry credentials
        sources: Transport settings
        destination: Store the policy in the main store or in output_path
        output_path: File to write to when destination is LOCAL_FILE
        store: Main store, the configured one by default
        registry: Registry client, built from docker_config by default

    Returns:
        Path of the policy on the local filesystem
    """
    sources = sources or Sources()
    scheme = urlparse(uri).scheme

    if scheme == 'file':
        path = local_path(uri)
        if not path.exists():
            raise PolicyNotFoundError(f"Cannot find file: '{path}'")
        return path

    if destination == PullDestination.LOCAL_FILE:
        if output_path is None:
            raise ValueError('output_path is required when pulling to a local file')
        target = Path(output_path)
    else:
        target = (store or PolicyStore()).policy_path(uri)

    logger.info('policy_pull_started', uri=uri, destination=str(target))
    if scheme in ('http', 'https'):
        path = _download_http(uri, target, sources, config.registry_timeout())
    elif scheme == 'registry':
        path = _download_registry(uri, target, sources, registry or RegistryClient(docker_config))
    else:
        raise PolicyNotFoundError(f"unknown scheme: {scheme}")

    digest = hashlib.sha256(path.read_bytes()).hexdigest()
    logger.info('policy_pulled', uri=uri, path=str(path), sha256=digest)
    return path
