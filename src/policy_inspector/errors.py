"""
Error types raised by the policy inspector.

Every error that should reach the operator as a readable message derives
from PolicyInspectorError. Failures while looking up signatures never
surface as errors: the resolver turns them into "no signature".
"""


class PolicyInspectorError(Exception):
    """Base class for user-facing errors."""


class ConfigurationError(PolicyInspectorError):
    """Invalid sources file, docker config or command line settings."""


class OutputFormatError(ConfigurationError, ValueError):
    """Unknown output format requested."""

    def __init__(self, value: str):
        super().__init__(f"Invalid output format '{value}'")
        self.value = value


class PolicyNotFoundError(PolicyInspectorError):
    """The policy cannot be located locally or in the store."""


class MissingMetadataError(PolicyInspectorError):
    """
    The policy module does not embed any metadata.

    The hint names `kwctl annotate`, the companion tool that embeds metadata.
    """

    def __init__(self, uri: str):
        super().__init__(
            f"No Kubewarden metadata found inside of '{uri}'.\n"
            "Policies can be annotated with the `kwctl annotate` command."
        )
        self.uri = uri


class InvalidMetadataError(PolicyInspectorError):
    """Embedded metadata is malformed or violates its invariants."""


class InvalidRequestError(PolicyInspectorError):
    """The payload handed to the evaluator is not an object we can evaluate."""


class RegistryError(PolicyInspectorError):
    """A registry operation failed."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class RenderError(PolicyInspectorError):
    """Serializing or rendering a report failed."""


class EvaluationError(PolicyInspectorError):
    """The policy evaluator could not produce a result."""
