"""
Runtime configuration read from the environment.

Command line options override these values; see policy_inspector.cli.
"""

import os
from pathlib import Path
from typing import Optional


DEFAULT_REGISTRY_TIMEOUT = 30.0


def store_root() -> Path:
    """Root directory of the local policy store."""
    root = os.getenv('POLICY_INSPECTOR_STORE')
    if root:
        return Path(root)
    cache_home = os.getenv('XDG_CACHE_HOME') or os.path.join(Path.home(), '.cache')
    return Path(cache_home) / 'policy-inspector' / 'store'


def default_sources_path() -> Optional[Path]:
    """Sources file to use when none is given explicitly, if there is one."""
    explicit = os.getenv('POLICY_INSPECTOR_SOURCES')
    if explicit:
        return Path(explicit)
    config_home = os.getenv('XDG_CONFIG_HOME') or os.path.join(Path.home(), '.config')
    candidate = Path(config_home) / 'policy-inspector' / 'sources.yaml'
    return candidate if candidate.exists() else None


def default_docker_config_path() -> Optional[Path]:
    """Docker client configuration holding registry credentials, if any."""
    docker_dir = os.getenv('DOCKER_CONFIG')
    if docker_dir:
        candidate = Path(docker_dir) / 'config.json'
    else:
        candidate = Path.home() / '.docker' / 'config.json'
    return candidate if candidate.exists() else None


def registry_timeout() -> float:
    """Timeout in seconds applied to every registry request."""
    raw = os.getenv('POLICY_INSPECTOR_REGISTRY_TIMEOUT')
    if not raw:
        return DEFAULT_REGISTRY_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_REGISTRY_TIMEOUT


def evaluator_command() -> Optional[str]:
    return os.getenv('POLICY_EVALUATOR_COMMAND') or None


def log_level() -> str:
    return os.getenv('POLICY_INSPECTOR_LOG_LEVEL', 'warning')


def log_json() -> bool:
    return os.getenv('POLICY_INSPECTOR_LOG_JSON', 'false').lower() == 'true'
