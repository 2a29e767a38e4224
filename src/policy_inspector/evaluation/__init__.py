"""
Policy Inspector - Evaluation Module

This module prepares requests for evaluation (unwrapping AdmissionReview
envelopes, decoding settings) and hands them to a policy evaluator.
"""

from .evaluator import CommandEvaluator, PolicyEvaluator, ValidationResponse, create_evaluator
from .request import normalize_request, parse_request, parse_settings

__all__ = [
    'CommandEvaluator',
    'PolicyEvaluator',
    'ValidationResponse',
    'create_evaluator',
    'normalize_request',
    'parse_request',
    'parse_settings',
]
