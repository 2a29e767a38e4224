"""
Policy Inspector - Signatures Module

This module locates the Sigstore signatures published for a policy: the
signature reference is derived from the policy manifest digest and the
signature manifest is fetched on a best-effort basis.
"""

from .reference import get_signature_reference, signature_tag
from .resolver import fetch_signatures_manifest

__all__ = ['get_signature_reference', 'signature_tag', 'fetch_signatures_manifest']
