"""
Policy Inspector - Commands Module

This module implements the operations behind the command line: inspecting a
policy, pulling it and evaluating it against a request.
"""

from .inspect import inspect
from .pull import pull_policy
from .run import pull_and_run

__all__ = ['inspect', 'pull_policy', 'pull_and_run']
