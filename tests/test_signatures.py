"""
Test suite for signatures module.
"""

import asyncio
from unittest.mock import MagicMock

import requests

from policy_inspector.errors import RegistryError
from policy_inspector.registry.client import RegistryClient
from policy_inspector.registry.manifest import Descriptor, ImageManifest, IndexManifest
from policy_inspector.signatures import (
    fetch_signatures_manifest,
    get_signature_reference,
    signature_tag,
)

DIGEST = 'sha256:0d6611ea12cf2904066308dde1c480b5d4f40e19b12f51f101a256b44d6c2dd5'
SIGNATURE_TAG = 'sha256-0d6611ea12cf2904066308dde1c480b5d4f40e19b12f51f101a256b44d6c2dd5.sig'
POLICY_URI = 'registry://ghcr.io/kubewarden/tests/pod-privileged:v0.1.9'


def signature_manifest():
    return ImageManifest(
        schemaVersion=2,
        mediaType='application/vnd.oci.image.manifest.v1+json',
        config=Descriptor(
            mediaType='application/vnd.oci.image.config.v1+json',
            digest='sha256:' + 'a' * 64,
            size=233,
        ),
        layers=[
            Descriptor(
                mediaType='application/vnd.dev.cosign.simplesigning.v1+json',
                digest='sha256:' + 'b' * 64,
                size=242,
                annotations={'dev.cosignproject.cosign/signature': 'MEUCIQD'},
            )
        ],
    )


class TestSignatureReference:
    """Test cases for signature reference derivation."""

    def test_signature_tag(self):
        assert signature_tag(DIGEST) == SIGNATURE_TAG

    def test_registry_uri(self):
        assert get_signature_reference(POLICY_URI, DIGEST) == (
            f"registry://ghcr.io/kubewarden/tests/pod-privileged:{SIGNATURE_TAG}"
        )

    def test_uri_without_scheme(self):
        assert get_signature_reference('ghcr.io/kubewarden/tests/pod-privileged:v0.1.9', DIGEST) == (
            f"ghcr.io/kubewarden/tests/pod-privileged:{SIGNATURE_TAG}"
        )

    def test_uri_without_separator(self):
        assert get_signature_reference('not_valid', DIGEST) is None
        assert get_signature_reference('not_valid', 'sha512:abcd') is None

    def test_replaces_only_after_last_colon(self):
        reference = get_signature_reference('localhost:5000/policy:latest', DIGEST)

        assert reference == f"localhost:5000/policy:{SIGNATURE_TAG}"

    def test_deterministic(self):
        first = get_signature_reference(POLICY_URI, DIGEST)
        second = get_signature_reference(POLICY_URI, DIGEST)

        assert first == second


class TestSignatureResolver:
    """Test cases for fetch_signatures_manifest."""

    def setup_method(self):
        """Set up test fixtures."""
        self.registry = MagicMock(spec=RegistryClient)
        self.registry.manifest_digest.return_value = DIGEST
        self.registry.manifest.return_value = signature_manifest()

    def resolve(self, uri=POLICY_URI):
        return asyncio.run(fetch_signatures_manifest(uri, registry=self.registry))

    def test_signature_found(self):
        manifest = self.resolve()

        assert isinstance(manifest, ImageManifest)
        assert manifest.layers[0].size == 242
        self.registry.manifest_digest.assert_called_once_with(POLICY_URI, None)
        self.registry.manifest.assert_called_once_with(
            f"registry://ghcr.io/kubewarden/tests/pod-privileged:{SIGNATURE_TAG}", None
        )

    def test_digest_failure(self):
        self.registry.manifest_digest.side_effect = RegistryError('unauthorized', status_code=401)

        assert self.resolve() is None
        self.registry.manifest.assert_not_called()

    def test_digest_timeout(self):
        self.registry.manifest_digest.side_effect = requests.exceptions.Timeout('timed out')

        assert self.resolve() is None

    def test_reference_cannot_be_derived(self):
        assert self.resolve('not_valid') is None
        self.registry.manifest.assert_not_called()

    def test_signature_manifest_missing(self):
        self.registry.manifest.side_effect = RegistryError('not found', status_code=404)

        assert self.resolve() is None

    def test_index_manifest_is_ignored(self):
        self.registry.manifest.return_value = IndexManifest(
            mediaType='application/vnd.oci.image.index.v1+json', manifests=[]
        )

        assert self.resolve() is None

    def test_sources_are_forwarded(self):
        sources = MagicMock()
        asyncio.run(fetch_signatures_manifest(POLICY_URI, sources=sources, registry=self.registry))

        self.registry.manifest_digest.assert_called_once_with(POLICY_URI, sources)
