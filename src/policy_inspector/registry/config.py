"""
Registry access configuration: sources (insecure registries, custom
certificate authorities) and docker client credentials.
"""

import atexit
import base64
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple, Union

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from ..errors import ConfigurationError

logger = structlog.get_logger(__name__)

DOCKER_HUB_AUTH_KEYS = ('https://index.docker.io/v1/', 'index.docker.io', 'docker.io')

_bundle_dir: Optional[tempfile.TemporaryDirectory] = None


def _certificate_bundle_dir() -> Path:
    """Directory holding the CA bundles of this process, removed at exit."""
    global _bundle_dir
    if _bundle_dir is None:
        _bundle_dir = tempfile.TemporaryDirectory(prefix='policy-inspector-ca-')
        atexit.register(_bundle_dir.cleanup)
    return Path(_bundle_dir.name)


class PathAuthority(BaseModel):
    type: Literal['Path']
    path: str


class DataAuthority(BaseModel):
    type: Literal['Data']
    data: str


SourceAuthority = Union[PathAuthority, DataAuthority]


class Sources(BaseModel):
    """Per-registry transport settings."""

    model_config = ConfigDict(frozen=True)

    insecure_sources: List[str] = Field(default_factory=list)
    source_authorities: Dict[str, List[SourceAuthority]] = Field(default_factory=dict)

    _bundles: Dict[str, str] = PrivateAttr(default_factory=dict)

    def is_insecure_source(self, host: str) -> bool:
        return host in self.insecure_sources

    def certificate_bundle(self, host: str) -> Optional[str]:
        """
        Path of a PEM bundle holding the authorities configured for a host.

        The bundle is written once per host, in a temporary directory removed
        when the process exits.
        """
        if host in self._bundles:
            return self._bundles[host]

        authorities = self.source_authorities.get(host)
        if not authorities:
            return None

        pems = []
        for authority in authorities:
            if isinstance(authority, PathAuthority):
                try:
                    pems.append(Path(authority.path).read_text())
                except OSError as e:
                    raise ConfigurationError(
                        f"Cannot read certificate authority {authority.path}: {e}"
                    ) from e
            else:
                pems.append(authority.data)

        bundle = tempfile.NamedTemporaryFile(
            mode='w', suffix='.pem', dir=_certificate_bundle_dir(), delete=False
        )
        with bundle:
            bundle.write('\n'.join(pems))
        self._bundles[host] = bundle.name
        return bundle.name


def read_sources_file(path: Union[str, Path]) -> Sources:
    """Load a YAML sources file."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read sources file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid sources file {path}: {e}") from e

    try:
        return Sources.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid sources file {path}: {e}") from e


class DockerConfig:
    """Credentials stored by the docker client (``config.json``)."""

    def __init__(self, auths: Optional[Dict[str, Dict[str, str]]] = None):
        self.auths = auths or {}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'DockerConfig':
        if not os.path.exists(path):
            raise ConfigurationError(f"Docker config not found: {path}")
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Invalid docker config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid docker config {path}: not an object")
        return cls(auths=data.get('auths') or {})

    def credentials_for(self, host: str) -> Optional[Tuple[str, str]]:
        """
        Look up the username and password stored for a registry host.

        Args:
            host: Registry host, optionally with port

        Returns:
            (username, password) tuple or None
        """
        keys = [host, f"https://{host}", f"http://{host}"]
        if host in DOCKER_HUB_AUTH_KEYS:
            keys.extend(DOCKER_HUB_AUTH_KEYS)

        for key in keys:
            entry = self.auths.get(key)
            if not entry:
                continue
            if entry.get('auth'):
                try:
                    decoded = base64.b64decode(entry['auth']).decode('utf-8')
                except (ValueError, UnicodeDecodeError):
                    logger.warning('docker_config_invalid_auth', host=host)
                    continue
                username, _, password = decoded.partition(':')
                return username, password
            if entry.get('username') is not None:
                return entry['username'], entry.get('password', '')
        return None
