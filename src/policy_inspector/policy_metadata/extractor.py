"""
Metadata Extractor Module

Extracts the policy metadata stored in the ``kubewarden_metadata`` custom
section of a WebAssembly module.
"""

import json
import os
from typing import Iterator, Optional, Tuple

import structlog
from pydantic import ValidationError

from ..errors import InvalidMetadataError
from .metadata import PolicyMetadata

logger = structlog.get_logger(__name__)


WASM_MAGIC = b'\x00asm'
WASM_HEADER_SIZE = 8
CUSTOM_SECTION_ID = 0
METADATA_SECTION_NAME = 'kubewarden_metadata'


def _read_leb128(data: bytes, offset: int) -> Tuple[int, int]:
    """Decode an unsigned LEB128 integer, returning (value, next offset)."""
    result = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise InvalidMetadataError('Truncated WebAssembly module')
        byte = data[offset]
        offset += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, offset
        shift += 7
        if shift > 35:
            raise InvalidMetadataError('Invalid LEB128 integer in WebAssembly module')


def iter_custom_sections(data: bytes) -> Iterator[Tuple[str, bytes]]:
    """Yield (name, payload) for every custom section of a WebAssembly module."""
    if data[:4] != WASM_MAGIC or len(data) < WASM_HEADER_SIZE:
        raise InvalidMetadataError('Not a WebAssembly module')

    offset = WASM_HEADER_SIZE
    while offset < len(data):
        section_id = data[offset]
        size, offset = _read_leb128(data, offset + 1)
        end = offset + size
        if end > len(data):
            raise InvalidMetadataError('Truncated WebAssembly section')

        if section_id == CUSTOM_SECTION_ID:
            name_len, name_start = _read_leb128(data, offset)
            name_end = name_start + name_len
            if name_end > end:
                raise InvalidMetadataError('Invalid custom section name')
            try:
                name = data[name_start:name_end].decode('utf-8')
            except UnicodeDecodeError as e:
                raise InvalidMetadataError(f'Invalid custom section name: {e}') from e
            yield name, data[name_end:end]

        offset = end


class MetadataExtractor:
    """Extracts policy metadata from WebAssembly modules."""

    def __init__(self, section_name: str = METADATA_SECTION_NAME):
        self.section_name = section_name

    def extract_metadata(self, policy_path: str) -> Optional[PolicyMetadata]:
        """
        Extract the metadata embedded in a policy module.

        Args:
            policy_path: Path to the WebAssembly module

        Returns:
            PolicyMetadata, or None when the module carries no metadata

        Raises:
            FileNotFoundError: the module does not exist
            InvalidMetadataError: the module or its metadata is malformed
        """
        if not os.path.exists(policy_path):
            raise FileNotFoundError(f"Policy not found: {policy_path}")

        with open(policy_path, 'rb') as f:
            data = f.read()

        payload = self._find_section(data)
        if payload is None:
            logger.debug('metadata_section_missing', path=str(policy_path))
            return None

        return self.parse_metadata(payload)

    def parse_metadata(self, payload: bytes) -> PolicyMetadata:
        """Parse the JSON payload of a metadata section."""
        try:
            raw = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidMetadataError(f"Error parsing policy metadata: {e}") from e

        try:
            return PolicyMetadata.model_validate(raw)
        except ValidationError as e:
            messages = '; '.join(err['msg'] for err in e.errors())
            raise InvalidMetadataError(f"Error parsing policy metadata: {messages}") from e

    def _find_section(self, data: bytes) -> Optional[bytes]:
        for name, payload in iter_custom_sections(data):
            if name == self.section_name:
                return payload
        return None


def extract_metadata(policy_path: str) -> Optional[PolicyMetadata]:
    """Shortcut for MetadataExtractor().extract_metadata."""
    return MetadataExtractor().extract_metadata(policy_path)
