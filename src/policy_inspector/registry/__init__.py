"""
Policy Inspector - Registry Module

This module provides access to OCI registries: reference parsing, manifest
models, transport and credential configuration, and the registry client.
"""

from .client import RegistryClient
from .config import DockerConfig, Sources, read_sources_file
from .manifest import Descriptor, ImageManifest, IndexManifest, parse_manifest
from .reference import Reference, parse_reference

__all__ = [
    'RegistryClient',
    'DockerConfig',
    'Sources',
    'read_sources_file',
    'Descriptor',
    'ImageManifest',
    'IndexManifest',
    'parse_manifest',
    'Reference',
    'parse_reference',
]
