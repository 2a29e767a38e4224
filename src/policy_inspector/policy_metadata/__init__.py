"""
Policy Inspector - Policy Metadata Module

This module provides the policy metadata model and the extractor reading it
out of WebAssembly policy modules.
"""

from .metadata import ExecutionMode, PolicyMetadata
from .extractor import MetadataExtractor, extract_metadata

__all__ = ['ExecutionMode', 'PolicyMetadata', 'MetadataExtractor', 'extract_metadata']
