"""
Test suite for fetcher module.
"""

import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from policy_inspector.errors import PolicyNotFoundError, RegistryError
from policy_inspector.fetcher import (
    PolicyStore,
    PullDestination,
    map_path_to_uri,
    pull,
    select_wasm_layer,
    wasm_path,
)
from policy_inspector.registry.client import RegistryClient
from policy_inspector.registry.manifest import IndexManifest, parse_manifest

from test_registry import IMAGE_MANIFEST

POLICY_URI = 'registry://ghcr.io/kubewarden/policies/pod-privileged:v0.1.9'


class TestPolicyUris:
    """Test cases for map_path_to_uri and wasm_path."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.store = PolicyStore(os.path.join(self.temp_dir, 'store'))
        self.policy = os.path.join(self.temp_dir, 'policy.wasm')
        with open(self.policy, 'wb') as f:
            f.write(b'\x00asm\x01\x00\x00\x00')

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_uri_is_kept(self):
        assert map_path_to_uri(POLICY_URI) == POLICY_URI
        assert map_path_to_uri('https://example.com/policy.wasm') == 'https://example.com/policy.wasm'

    def test_local_path_becomes_file_uri(self):
        uri = map_path_to_uri(self.policy)

        assert uri == f"file://{Path(self.policy).resolve()}"

    def test_missing_local_path(self):
        with pytest.raises(PolicyNotFoundError) as exc_info:
            map_path_to_uri('missing.wasm')
        assert str(exc_info.value) == "Cannot find file: 'missing.wasm'"

    def test_wasm_path_of_file_uri(self):
        path = wasm_path(map_path_to_uri(self.policy), self.store)

        assert path == Path(self.policy).resolve()

    def test_wasm_path_of_missing_file_uri(self):
        with pytest.raises(PolicyNotFoundError):
            wasm_path(f"file://{self.temp_dir}/missing.wasm", self.store)

    def test_wasm_path_not_pulled(self):
        with pytest.raises(PolicyNotFoundError) as exc_info:
            wasm_path(POLICY_URI, self.store)
        assert str(exc_info.value) == (
            f"Cannot find policy '{POLICY_URI}' inside of the local store.\n"
            f"Try executing `policy-inspector pull {POLICY_URI}`"
        )

    def test_wasm_path_in_store(self):
        stored = self.store.policy_path(POLICY_URI)
        stored.parent.mkdir(parents=True)
        stored.write_bytes(b'\x00asm')

        assert wasm_path(POLICY_URI, self.store) == stored

    def test_unknown_scheme(self):
        with pytest.raises(PolicyNotFoundError) as exc_info:
            wasm_path('ftp://example.com/policy.wasm', self.store)
        assert str(exc_info.value) == 'unknown scheme: ftp'


class TestPolicyStore:
    """Test cases for PolicyStore class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.store = PolicyStore(self.temp_dir)

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def add_policy(self, uri):
        path = self.store.policy_path(uri)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b'\x00asm')
        return path

    def test_policy_path_layout(self):
        path = self.store.policy_path(POLICY_URI)

        assert path == Path(self.temp_dir) / 'registry' / 'ghcr.io' / 'kubewarden' / 'policies' / 'pod-privileged:v0.1.9'

    def test_policy_path_keeps_port(self):
        path = self.store.policy_path('https://example.com:8443/policies/psp.wasm')

        assert path == Path(self.temp_dir) / 'https' / 'example.com:8443' / 'policies' / 'psp.wasm'

    def test_policy_path_rejects_local_uris(self):
        with pytest.raises(PolicyNotFoundError):
            self.store.policy_path('file:///tmp/policy.wasm')

    def test_list_and_remove(self):
        self.add_policy(POLICY_URI)
        self.add_policy('https://example.com/psp.wasm')

        assert self.store.list_policies() == [
            'registry://ghcr.io/kubewarden/policies/pod-privileged:v0.1.9',
            'https://example.com/psp.wasm',
        ]
        assert self.store.remove(POLICY_URI)
        assert not self.store.contains(POLICY_URI)
        assert not self.store.remove(POLICY_URI)

    def test_empty_store(self):
        assert PolicyStore(os.path.join(self.temp_dir, 'missing')).list_policies() == []


class TestPull:
    """Test cases for pull."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.store = PolicyStore(os.path.join(self.temp_dir, 'store'))
        self.registry = MagicMock(spec=RegistryClient)
        self.registry.manifest.return_value = parse_manifest(IMAGE_MANIFEST)
        self.registry.pull_blob.side_effect = self.fake_pull_blob

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    @staticmethod
    def fake_pull_blob(reference, digest, destination, sources=None):
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(b'\x00asm\x01\x00\x00\x00')
        return destination

    def test_pull_to_store(self):
        path = pull(POLICY_URI, store=self.store, registry=self.registry)

        assert path == self.store.policy_path(POLICY_URI)
        assert path.exists()
        reference, digest, destination, _ = self.registry.pull_blob.call_args[0]
        assert reference == POLICY_URI
        assert digest == 'sha256:' + 'd' * 64

    def test_pull_to_local_file(self):
        output = os.path.join(self.temp_dir, 'out.wasm')

        path = pull(POLICY_URI, destination=PullDestination.LOCAL_FILE, output_path=output,
                    store=self.store, registry=self.registry)

        assert path == Path(output)
        assert not self.store.contains(POLICY_URI)

    def test_pull_local_file_uri(self):
        policy = os.path.join(self.temp_dir, 'policy.wasm')
        with open(policy, 'wb') as f:
            f.write(b'\x00asm')

        assert pull(f"file://{policy}", store=self.store, registry=self.registry) == Path(policy)
        self.registry.manifest.assert_not_called()

    def test_pull_index_manifest(self):
        self.registry.manifest.return_value = IndexManifest(manifests=[])

        with pytest.raises(RegistryError):
            pull(POLICY_URI, store=self.store, registry=self.registry)

    def test_pull_unknown_scheme(self):
        with pytest.raises(PolicyNotFoundError):
            pull('ftp://example.com/policy.wasm', store=self.store, registry=self.registry)

    def test_pull_registry_timeout(self):
        session = MagicMock()
        session.request.side_effect = requests.exceptions.ReadTimeout('read timed out')
        registry = RegistryClient(timeout=5, session=session)

        with pytest.raises(RegistryError):
            pull('registry://ghcr.io/org/policy:v1', store=self.store, registry=registry)
        assert not self.store.contains('registry://ghcr.io/org/policy:v1')

    @patch('requests.get')
    def test_pull_http_interrupted(self, mock_get):
        response = MagicMock(status_code=200)
        response.iter_content.side_effect = requests.exceptions.ChunkedEncodingError('connection broken')
        mock_get.return_value.__enter__.return_value = response
        output = os.path.join(self.temp_dir, 'out.wasm')

        with pytest.raises(PolicyNotFoundError):
            pull('https://example.com/policy.wasm', destination=PullDestination.LOCAL_FILE,
                 output_path=output, store=self.store, registry=self.registry)
        assert not os.path.exists(output)
        assert not os.path.exists(output + '.partial')


class TestSelectWasmLayer:

    def test_wasm_layer_preferred(self):
        manifest = parse_manifest(dict(IMAGE_MANIFEST, layers=[
            {'mediaType': 'application/octet-stream', 'digest': 'sha256:1', 'size': 1},
            {'mediaType': 'application/vnd.wasm.content.layer.v1+wasm', 'digest': 'sha256:2', 'size': 2},
        ]))

        assert select_wasm_layer(manifest).digest == 'sha256:2'

    def test_single_layer(self):
        manifest = parse_manifest(dict(IMAGE_MANIFEST, layers=[
            {'mediaType': 'application/octet-stream', 'digest': 'sha256:1', 'size': 1},
        ]))

        assert select_wasm_layer(manifest).digest == 'sha256:1'

    def test_ambiguous_layers(self):
        manifest = parse_manifest(dict(IMAGE_MANIFEST, layers=[
            {'mediaType': 'application/octet-stream', 'digest': 'sha256:1', 'size': 1},
            {'mediaType': 'application/octet-stream', 'digest': 'sha256:2', 'size': 1},
        ]))

        with pytest.raises(RegistryError):
            select_wasm_layer(manifest)
