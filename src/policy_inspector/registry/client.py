"""
Registry Client Module

Minimal client for the OCI distribution API: manifest digests, manifests
and blob downloads, with token and basic authentication.
"""

import base64
import hashlib
import os
import re
from pathlib import Path
from typing import Dict, Optional, Union

import requests
import structlog
from pydantic import ValidationError

from .. import config
from ..errors import RegistryError
from .config import DockerConfig, Sources
from .manifest import ACCEPTED_MEDIA_TYPES, Manifest, parse_manifest
from .reference import Reference, parse_reference

logger = structlog.get_logger(__name__)

_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


class RegistryClient:
    """Talks to OCI registries on behalf of the inspector."""

    def __init__(self,
                 docker_config: Optional[DockerConfig] = None,
                 timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the registry client.

        Args:
            docker_config: Credentials used to authenticate against registries
            timeout: Timeout in seconds for every HTTP request
            session: requests session to use (a new one by default)
        """
        self.docker_config = docker_config or DockerConfig()
        self.timeout = timeout if timeout is not None else config.registry_timeout()
        self.session = session or requests.Session()

    def manifest_digest(self, reference: str, sources: Optional[Sources] = None) -> str:
        """
        Resolve the content digest of the manifest a reference points to.

        Args:
            reference: Image reference, optionally prefixed with registry://
            sources: Transport settings

        Returns:
            Digest string such as ``sha256:0d66...``
        """
        ref = parse_reference(reference)
        path = f"manifests/{ref.qualifier}"
        headers = {'Accept': ACCEPTED_MEDIA_TYPES}

        response = self._request('HEAD', ref, path, sources, headers=headers)
        self._raise_for_status(response, ref)
        digest = response.headers.get('Docker-Content-Digest')
        if digest:
            return digest

        # Some registries omit the digest header on HEAD requests
        response = self._request('GET', ref, path, sources, headers=headers)
        self._raise_for_status(response, ref)
        return f"sha256:{hashlib.sha256(response.content).hexdigest()}"

    def manifest(self, reference: str, sources: Optional[Sources] = None) -> Manifest:
        """
        Fetch the manifest a reference points to.

        Returns:
            ImageManifest or IndexManifest
        """
        ref = parse_reference(reference)
        response = self._request(
            'GET', ref, f"manifests/{ref.qualifier}", sources,
            headers={'Accept': ACCEPTED_MEDIA_TYPES}
        )
        self._raise_for_status(response, ref)

        try:
            data = response.json()
        except ValueError as e:
            raise RegistryError(f"Invalid manifest returned for {ref}: {e}") from e
        if not isinstance(data, dict):
            raise RegistryError(f"Invalid manifest returned for {ref}: not an object")

        try:
            return parse_manifest(data, response.headers.get('Content-Type'))
        except ValidationError as e:
            raise RegistryError(f"Invalid manifest returned for {ref}: {e}") from e

    def pull_blob(self,
                  reference: str,
                  digest: str,
                  destination: Union[str, Path],
                  sources: Optional[Sources] = None) -> Path:
        """
        Download a blob and verify it against its digest.

        Args:
            reference: Image reference the blob belongs to
            digest: Digest of the blob
            destination: File the blob is written to
            sources: Transport settings

        Returns:
            Path of the downloaded blob
        """
        ref = parse_reference(reference)
        algorithm, _, expected = digest.partition(':')
        try:
            hasher = hashlib.new(algorithm)
        except ValueError as e:
            raise RegistryError(f"Unsupported digest algorithm '{algorithm}'") from e

        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        partial = destination.with_name(destination.name + '.partial')

        response = self._request('GET', ref, f"blobs/{digest}", sources, stream=True)
        with response:
            self._raise_for_status(response, ref)
            try:
                with open(partial, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=8192):
                        hasher.update(chunk)
                        f.write(chunk)
            except requests.exceptions.RequestException as e:
                partial.unlink(missing_ok=True)
                raise RegistryError(f"Download of {digest} from {ref} failed: {e}") from e
            except BaseException:
                partial.unlink(missing_ok=True)
                raise

        if hasher.hexdigest() != expected:
            partial.unlink()
            raise RegistryError(
                f"Digest mismatch for {ref}: expected {digest}, "
                f"got {algorithm}:{hasher.hexdigest()}"
            )

        os.replace(partial, destination)
        logger.debug('blob_pulled', reference=str(ref), digest=digest, path=str(destination))
        return destination

    def _request(self,
                 method: str,
                 ref: Reference,
                 path: str,
                 sources: Optional[Sources],
                 headers: Optional[Dict[str, str]] = None,
                 stream: bool = False) -> requests.Response:
        sources = sources or Sources()
        host = ref.registry

        verify: Union[bool, str] = True
        schemes = ['https']
        if sources.is_insecure_source(host):
            verify = False
            schemes.append('http')
        else:
            bundle = sources.certificate_bundle(host)
            if bundle:
                verify = bundle

        last_error: Optional[Exception] = None
        for scheme in schemes:
            url = f"{scheme}://{host}/v2/{ref.repository}/{path}"
            try:
                return self._send(method, url, ref, headers, verify, stream)
            except requests.exceptions.ConnectionError as e:
                logger.debug('registry_connection_failed', url=url, error=str(e))
                last_error = e
            except requests.exceptions.RequestException as e:
                raise RegistryError(f"Request to registry {host} failed: {e}") from e

        raise RegistryError(f"Cannot connect to registry {host}: {last_error}") from last_error

    def _send(self,
              method: str,
              url: str,
              ref: Reference,
              headers: Optional[Dict[str, str]],
              verify: Union[bool, str],
              stream: bool) -> requests.Response:
        headers = dict(headers or {})
        logger.debug('registry_request', method=method, url=url)
        response = self.session.request(
            method, url, headers=headers, verify=verify, timeout=self.timeout, stream=stream
        )
        if response.status_code != 401:
            return response

        challenge = response.headers.get('WWW-Authenticate', '')
        authorization = self._authorization_for(challenge, ref, verify)
        if authorization is None:
            return response

        response.close()
        headers['Authorization'] = authorization
        return self.session.request(
            method, url, headers=headers, verify=verify, timeout=self.timeout, stream=stream
        )

    def _authorization_for(self,
                           challenge: str,
                           ref: Reference,
                           verify: Union[bool, str]) -> Optional[str]:
        """Answer a WWW-Authenticate challenge with an Authorization header value."""
        scheme, _, raw_params = challenge.partition(' ')
        params = dict(_CHALLENGE_PARAM.findall(raw_params))
        credentials = self.docker_config.credentials_for(ref.registry)

        if scheme.lower() == 'basic':
            if credentials is None:
                return None
            token = base64.b64encode(':'.join(credentials).encode('utf-8')).decode('ascii')
            return f"Basic {token}"

        if scheme.lower() != 'bearer' or not params.get('realm'):
            return None

        query = {'scope': params.get('scope') or f"repository:{ref.repository}:pull"}
        if params.get('service'):
            query['service'] = params['service']

        response = self.session.get(
            params['realm'], params=query, auth=credentials, verify=verify, timeout=self.timeout
        )
        if response.status_code != 200:
            raise RegistryError(
                f"Authentication against {params['realm']} failed: HTTP {response.status_code}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RegistryError(f"Invalid token response from {params['realm']}: {e}") from e
        token = None
        if isinstance(body, dict):
            token = body.get('token') or body.get('access_token')
        if not token:
            raise RegistryError(f"No token returned by {params['realm']}")
        return f"Bearer {token}"

    @staticmethod
    def _raise_for_status(response: requests.Response, ref: Reference) -> None:
        if response.status_code >= 400:
            raise RegistryError(
                f"Registry {ref.registry} returned HTTP {response.status_code} for {ref}",
                status_code=response.status_code
            )
