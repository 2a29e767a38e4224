"""
Policy Store Module

Local directory mirroring the policies pulled from remote locations. A
policy lives at ``<root>/<scheme>/<host[:port]>/<path>``.
"""

from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import urlparse

import structlog

from .. import config
from ..errors import PolicyNotFoundError

logger = structlog.get_logger(__name__)

STORE_SCHEMES = ('registry', 'http', 'https')


class PolicyStore:
    """Filesystem store of downloaded policies."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root is not None else config.store_root()

    def policy_path(self, uri: str) -> Path:
        """
        Location of a remote policy inside of the store.

        Args:
            uri: Policy URI using one of the store schemes

        Returns:
            Path the policy is (or would be) stored at
        """
        parsed = urlparse(uri)
        if parsed.scheme not in STORE_SCHEMES:
            raise PolicyNotFoundError(f"unknown scheme: {parsed.scheme}")
        if not parsed.netloc:
            raise PolicyNotFoundError(f"Invalid policy URI '{uri}': missing host")

        path = parsed.path.lstrip('/')
        if parsed.query:
            path = f"{path}?{parsed.query}"
        return self.root / parsed.scheme / parsed.netloc / path

    def contains(self, uri: str) -> bool:
        return self.policy_path(uri).is_file()

    def list_policies(self) -> List[str]:
        """URIs of every policy found in the store."""
        if not self.root.exists():
            return []

        policies = []
        for scheme in STORE_SCHEMES:
            scheme_dir = self.root / scheme
            if not scheme_dir.is_dir():
                continue
            for policy_file in sorted(scheme_dir.rglob('*')):
                if policy_file.is_file() and not policy_file.name.endswith('.partial'):
                    relative = policy_file.relative_to(scheme_dir).as_posix()
                    policies.append(f"{scheme}://{relative}")
        return policies

    def remove(self, uri: str) -> bool:
        """Remove a policy from the store. Returns True if it was present."""
        path = self.policy_path(uri)
        if not path.is_file():
            return False
        path.unlink()
        logger.info('policy_removed', uri=uri, path=str(path))
        return True
