"""
Policy Evaluator Module

Interface to the engine evaluating a policy against a request, and an
implementation delegating to an external command.
"""

import json
import shlex
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .. import config
from ..errors import EvaluationError

logger = structlog.get_logger(__name__)

DEFAULT_EVALUATION_TIMEOUT = 60.0


class ValidationResponseStatus(BaseModel):
    message: Optional[str] = None
    code: Optional[int] = None


class ValidationResponse(BaseModel):
    """Outcome of a policy evaluation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='ignore')

    uid: str = ''
    allowed: bool
    patch_type: Optional[str] = Field(default=None, alias='patchType')
    patch: Optional[str] = None
    status: Optional[ValidationResponseStatus] = None
    audit_annotations: Optional[Dict[str, str]] = Field(default=None, alias='auditAnnotations')
    warnings: Optional[List[str]] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class PolicyEvaluator(ABC):
    """Evaluates one policy, with its settings, against requests."""

    @abstractmethod
    def validate(self, request: Dict[str, Any]) -> ValidationResponse:
        pass


class CommandEvaluator(PolicyEvaluator):
    """
    Delegates evaluation to an external command.

    The command receives the policy path as its last argument and a JSON
    document ``{"request": ..., "settings": ...}`` on stdin. It must print a
    validation response as JSON on stdout.
    """

    def __init__(self,
                 policy_path: Path,
                 settings: Optional[Dict[str, Any]],
                 command: str,
                 timeout: float = DEFAULT_EVALUATION_TIMEOUT):
        self.policy_path = Path(policy_path)
        self.settings = settings
        try:
            self.command = shlex.split(command)
        except ValueError as e:
            raise EvaluationError(f"Invalid policy evaluator command '{command}': {e}") from e
        self.timeout = timeout
        if not self.command:
            raise EvaluationError('Empty policy evaluator command')

    def validate(self, request: Dict[str, Any]) -> ValidationResponse:
        payload = json.dumps({'request': request, 'settings': self.settings or {}})
        args = self.command + [str(self.policy_path)]
        logger.debug('evaluator_started', command=args[0], policy=str(self.policy_path))

        try:
            completed = subprocess.run(
                args,
                input=payload,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise EvaluationError(f"Policy evaluator not found: {args[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise EvaluationError(f"Policy evaluation timed out after {self.timeout}s") from e

        if completed.returncode != 0:
            raise EvaluationError(
                f"Policy evaluator exited with code {completed.returncode}: "
                f"{completed.stderr.strip()}"
            )

        try:
            return ValidationResponse.model_validate_json(completed.stdout)
        except ValidationError as e:
            raise EvaluationError(f"Invalid response from policy evaluator: {e}") from e


def create_evaluator(policy_path: Path,
                     settings: Optional[Dict[str, Any]] = None,
                     command: Optional[str] = None) -> PolicyEvaluator:
    """
    Build the evaluator for a policy.

    Args:
        policy_path: Path to the policy module
        settings: Policy settings
        command: Evaluator command; defaults to POLICY_EVALUATOR_COMMAND

    Raises:
        EvaluationError: no evaluator command is configured
    """
    command = command or config.evaluator_command()
    if not command:
        raise EvaluationError(
            'No policy evaluator configured: set POLICY_EVALUATOR_COMMAND '
            'or pass --evaluator-command'
        )
    return CommandEvaluator(policy_path, settings, command)
