"""
Policy Metadata Module

Data model of the metadata a Kubewarden policy embeds in its WebAssembly
module, together with the well-known annotation keys.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


ANNOTATION_PREFIX = 'io.kubewarden.policy.'

ANNOTATION_POLICY_TITLE = 'io.kubewarden.policy.title'
ANNOTATION_POLICY_DESCRIPTION = 'io.kubewarden.policy.description'
ANNOTATION_POLICY_AUTHOR = 'io.kubewarden.policy.author'
ANNOTATION_POLICY_URL = 'io.kubewarden.policy.url'
ANNOTATION_POLICY_SOURCE = 'io.kubewarden.policy.source'
ANNOTATION_POLICY_LICENSE = 'io.kubewarden.policy.license'
ANNOTATION_POLICY_USAGE = 'io.kubewarden.policy.usage'

SUPPORTED_PROTOCOL_VERSIONS = ('v1',)


class ExecutionMode(str, Enum):
    """How the evaluation logic of a policy has to be invoked."""

    KUBEWARDEN_WAPC = 'kubewarden-wapc'
    OPA = 'opa'
    OPA_GATEKEEPER = 'gatekeeper'
    WASI = 'wasi'

    @property
    def requires_protocol_version(self) -> bool:
        return self is ExecutionMode.KUBEWARDEN_WAPC

    def __str__(self) -> str:
        return self.value


class PolicyMetadata(BaseModel):
    """Metadata embedded inside of a policy module."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    protocol_version: Optional[str] = Field(default=None, alias='protocolVersion')
    rules: List[Dict[str, Any]] = Field(default_factory=list)
    annotations: Optional[Dict[str, str]] = None
    mutating: bool = False
    context_aware: bool = Field(default=False, alias='contextAware')
    execution_mode: ExecutionMode = Field(
        default=ExecutionMode.KUBEWARDEN_WAPC, alias='executionMode'
    )

    @model_validator(mode='after')
    def _check_protocol_version(self) -> 'PolicyMetadata':
        if not self.execution_mode.requires_protocol_version:
            return self
        if self.protocol_version is None:
            raise ValueError('Invalid policy: protocol_version not defined')
        if self.protocol_version not in SUPPORTED_PROTOCOL_VERSIONS:
            raise ValueError(
                f"Invalid policy: unknown protocol_version '{self.protocol_version}'"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to its wire format (camelCase keys)."""
        return self.model_dump(mode='json', by_alias=True)
