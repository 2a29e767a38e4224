"""
OCI manifest models.

Only the fields needed to inspect signatures and pull policies are modelled;
unknown fields are ignored.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

OCI_IMAGE_MEDIA_TYPE = 'application/vnd.oci.image.manifest.v1+json'
OCI_IMAGE_INDEX_MEDIA_TYPE = 'application/vnd.oci.image.index.v1+json'
DOCKER_MANIFEST_MEDIA_TYPE = 'application/vnd.docker.distribution.manifest.v2+json'
DOCKER_MANIFEST_LIST_MEDIA_TYPE = 'application/vnd.docker.distribution.manifest.list.v2+json'
WASM_LAYER_MEDIA_TYPE = 'application/vnd.wasm.content.layer.v1+wasm'

IMAGE_MEDIA_TYPES = (OCI_IMAGE_MEDIA_TYPE, DOCKER_MANIFEST_MEDIA_TYPE)
INDEX_MEDIA_TYPES = (OCI_IMAGE_INDEX_MEDIA_TYPE, DOCKER_MANIFEST_LIST_MEDIA_TYPE)

ACCEPTED_MEDIA_TYPES = ', '.join(IMAGE_MEDIA_TYPES + INDEX_MEDIA_TYPES)


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='ignore')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the registry wire format, omitting unset optional fields."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class Descriptor(_WireModel):
    """Content descriptor; the layers of a signature manifest are descriptors."""

    media_type: str = Field(alias='mediaType')
    digest: str
    size: int = Field(ge=0)
    annotations: Optional[Dict[str, str]] = None


class ImageManifest(_WireModel):
    """An OCI image manifest."""

    schema_version: int = Field(default=2, alias='schemaVersion')
    media_type: Optional[str] = Field(default=None, alias='mediaType')
    config: Descriptor
    layers: List[Descriptor] = Field(default_factory=list)
    annotations: Optional[Dict[str, str]] = None


class IndexManifest(_WireModel):
    """An OCI image index or Docker manifest list."""

    schema_version: int = Field(default=2, alias='schemaVersion')
    media_type: Optional[str] = Field(default=None, alias='mediaType')
    manifests: List[Dict[str, Any]] = Field(default_factory=list)
    annotations: Optional[Dict[str, str]] = None


Manifest = Union[ImageManifest, IndexManifest]


def parse_manifest(data: Dict[str, Any], content_type: Optional[str] = None) -> Manifest:
    """
    Build the right manifest model out of a decoded registry response.

    The media type declared in the document wins over the Content-Type
    header; documents listing ``manifests`` are treated as indexes.
    """
    media_type = data.get('mediaType') or content_type
    if media_type:
        media_type = media_type.split(';')[0].strip()
    if media_type in INDEX_MEDIA_TYPES or (media_type not in IMAGE_MEDIA_TYPES and 'manifests' in data):
        return IndexManifest.model_validate(data)
    return ImageManifest.model_validate(data)
