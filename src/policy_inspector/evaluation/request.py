"""
Request Normalization Module

Turns the payload given on the command line into the object a policy is
evaluated against. Callers can hand over either the raw request or a full
AdmissionReview envelope.
"""

import json
from typing import Any, Dict, Optional

import yaml

from ..errors import InvalidRequestError

ADMISSION_REVIEW_KIND = 'AdmissionReview'


def normalize_request(raw: Any) -> Dict[str, Any]:
    """
    Extract the object to evaluate out of a decoded JSON payload.

    Args:
        raw: Decoded JSON value

    Returns:
        The ``request`` of an AdmissionReview, or the payload itself

    Raises:
        InvalidRequestError: the payload is not a JSON object, or it is an
            AdmissionReview without a request object
    """
    if not isinstance(raw, dict):
        raise InvalidRequestError('request to evaluate is invalid')

    if raw.get('kind') != ADMISSION_REVIEW_KIND:
        return raw

    request = raw.get('request')
    if not isinstance(request, dict):
        raise InvalidRequestError('invalid admission review object')
    return request


def parse_request(text: str) -> Dict[str, Any]:
    """Decode a JSON request payload and normalize it."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidRequestError(f"request is not valid JSON: {e}") from e
    return normalize_request(raw)


def parse_settings(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode policy settings given as YAML or JSON.

    Returns:
        The settings mapping, or None when no settings were given
    """
    if text is None:
        return None
    try:
        settings = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidRequestError(f"Invalid policy settings: {e}") from e
    if settings is None:
        return None
    if not isinstance(settings, dict):
        raise InvalidRequestError('Invalid policy settings: expected a mapping')
    return settings
