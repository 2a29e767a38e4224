"""
Location of the Sigstore signature artifact of a policy.
"""

from typing import Optional

SIGNATURE_TAG_SUFFIX = '.sig'


def signature_tag(digest: str) -> str:
    """Tag cosign publishes signatures under: ``sha256:abc`` -> ``sha256-abc.sig``."""
    return digest.replace(':', '-') + SIGNATURE_TAG_SUFFIX


def get_signature_reference(uri: str, digest: str) -> Optional[str]:
    """
    Derive the reference of the signature manifest of an artifact.

    Mirrors ``cosign triangulate``: the tag (or digest) after the last colon
    of the reference is replaced by the signature tag built from the
    manifest digest.

    Args:
        uri: Artifact reference, e.g. ``registry://ghcr.io/org/policy:v1``
        digest: Manifest digest of the artifact

    Returns:
        The signature reference, or None when the reference has no colon
    """
    last_colon = uri.rfind(':')
    if last_colon == -1:
        return None
    return uri[:last_colon + 1] + signature_tag(digest)
