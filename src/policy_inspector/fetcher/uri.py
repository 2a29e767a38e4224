"""
Mapping of user supplied policy locations to URIs and local files.
"""

import re
from pathlib import Path
from urllib.parse import unquote, urlparse

from ..errors import PolicyNotFoundError
from .store import STORE_SCHEMES, PolicyStore

_SCHEME_PATTERN = re.compile(r'^\w+://')


def map_path_to_uri(uri: str) -> str:
    """
    Turn a command line argument into a policy URI.

    Arguments already carrying a scheme are returned unchanged; paths of
    existing local files become ``file://`` URIs.

    Raises:
        PolicyNotFoundError: the argument is neither a URI nor an existing file
    """
    if _SCHEME_PATTERN.match(uri):
        return uri

    path = Path(uri)
    if path.exists():
        return f"file://{path.resolve()}"
    raise PolicyNotFoundError(f"Cannot find file: '{uri}'")


def local_path(uri: str) -> Path:
    """Filesystem path of a ``file://`` URI."""
    return Path(unquote(urlparse(uri).path))


def wasm_path(uri: str, store: PolicyStore) -> Path:
    """
    Locate the WebAssembly module of a policy on the local filesystem.

    Args:
        uri: Policy URI
        store: Store holding pulled policies

    Raises:
        PolicyNotFoundError: remote policy not pulled yet, or unknown scheme
    """
    scheme = urlparse(uri).scheme
    if scheme == 'file':
        path = local_path(uri)
        if not path.exists():
            raise PolicyNotFoundError(f"Cannot find file: '{path}'")
        return path

    if scheme in STORE_SCHEMES:
        path = store.policy_path(uri)
        if path.exists():
            return path
        raise PolicyNotFoundError(
            f"Cannot find policy '{uri}' inside of the local store.\n"
            f"Try executing `policy-inspector pull {uri}`"
        )

    raise PolicyNotFoundError(f"unknown scheme: {scheme}")
