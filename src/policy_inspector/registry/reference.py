"""
Parsing of container image references.
"""

import re
from typing import Optional

from ..errors import RegistryError

REGISTRY_SCHEME = 'registry://'
DEFAULT_REGISTRY = 'index.docker.io'
DEFAULT_TAG = 'latest'

_TAG_PATTERN = re.compile(r'^[\w][\w.-]{0,127}$')
_DIGEST_PATTERN = re.compile(r'^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-zA-Z0-9=_-]+$')


class Reference:
    """A parsed ``[registry/]repository[:tag][@digest]`` reference."""

    def __init__(self, registry: str, repository: str,
                 tag: Optional[str] = None, digest: Optional[str] = None):
        self.registry = registry
        self.repository = repository
        self.tag = tag
        self.digest = digest

    @property
    def qualifier(self) -> str:
        """Tag or digest used to address the manifest."""
        return self.digest or self.tag or DEFAULT_TAG

    def __str__(self) -> str:
        out = f"{self.registry}/{self.repository}"
        if self.tag:
            out += f":{self.tag}"
        if self.digest:
            out += f"@{self.digest}"
        return out

    def __repr__(self) -> str:
        return f"Reference({str(self)!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Reference) and str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))


def _looks_like_registry(component: str) -> bool:
    return '.' in component or ':' in component or component == 'localhost'


def parse_reference(reference: str) -> Reference:
    """
    Parse an image reference, with or without the ``registry://`` scheme.

    Raises:
        RegistryError: the reference uses another scheme or is malformed
    """
    if reference.startswith(REGISTRY_SCHEME):
        reference = reference[len(REGISTRY_SCHEME):]
    elif '://' in reference:
        raise RegistryError(f"Not a registry reference: {reference}")

    if not reference:
        raise RegistryError('Empty image reference')

    digest = None
    if '@' in reference:
        reference, digest = reference.split('@', 1)
        if not _DIGEST_PATTERN.match(digest):
            raise RegistryError(f"Invalid digest '{digest}'")

    tag = None
    last_slash = reference.rfind('/')
    last_colon = reference.rfind(':')
    if last_colon > last_slash:
        reference, tag = reference[:last_colon], reference[last_colon + 1:]
        if not _TAG_PATTERN.match(tag):
            raise RegistryError(f"Invalid tag '{tag}'")

    components = reference.split('/')
    if len(components) > 1 and _looks_like_registry(components[0]):
        registry = components[0]
        repository = '/'.join(components[1:])
    else:
        registry = DEFAULT_REGISTRY
        repository = reference

    if registry in ('docker.io', 'registry-1.docker.io'):
        registry = DEFAULT_REGISTRY
    if registry == DEFAULT_REGISTRY and '/' not in repository:
        repository = f"library/{repository}"

    if not repository or repository != repository.lower():
        raise RegistryError(f"Invalid repository name '{repository}'")

    if tag is None and digest is None:
        tag = DEFAULT_TAG

    return Reference(registry, repository, tag, digest)
