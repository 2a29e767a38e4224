"""
Run Command Module

Pulls a policy into the store and evaluates it against a request.
"""

import asyncio
from typing import Any, Dict, Optional

import click
import structlog

from ..errors import PolicyInspectorError
from ..evaluation.evaluator import ValidationResponse, create_evaluator
from ..evaluation.request import parse_request
from ..fetcher.pull import PullDestination, pull
from ..fetcher.store import PolicyStore
from ..fetcher.uri import map_path_to_uri
from ..registry.config import DockerConfig, Sources

logger = structlog.get_logger(__name__)


async def pull_and_run(uri: str,
                       request: str,
                       docker_config: Optional[DockerConfig] = None,
                       sources: Optional[Sources] = None,
                       settings: Optional[Dict[str, Any]] = None,
                       evaluator_command: Optional[str] = None,
                       store: Optional[PolicyStore] = None) -> ValidationResponse:
    """
    Evaluate a policy against a request and print the result as JSON.

    Args:
        uri: Policy URI
        request: JSON payload, a raw request or an AdmissionReview
        docker_config: Registry credentials
        sources: Transport settings
        settings: Policy settings
        evaluator_command: Command evaluating the policy
        store: Store the policy is pulled into

    Returns:
        The validation response that was printed
    """
    try:
        uri = map_path_to_uri(uri)
        policy_path = await asyncio.to_thread(
            pull, uri, docker_config, sources, PullDestination.MAIN_STORE, None, store
        )
    except PolicyInspectorError as e:
        raise PolicyInspectorError(f"Error pulling policy {uri}: {e}") from e

    evaluated = parse_request(request)
    evaluator = create_evaluator(policy_path, settings, evaluator_command)
    response = await asyncio.to_thread(evaluator.validate, evaluated)

    logger.info('policy_evaluated', uri=uri, allowed=response.allowed)
    click.echo(response.to_json())
    return response

