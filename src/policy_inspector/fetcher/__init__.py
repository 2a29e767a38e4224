"""
Policy Inspector - Fetcher Module

This module maps policy locations to URIs, keeps the local store of pulled
policies and downloads policies from registries and web servers.
"""

from .pull import PullDestination, pull, select_wasm_layer
from .store import PolicyStore
from .uri import map_path_to_uri, wasm_path

__all__ = [
    'PolicyStore',
    'PullDestination',
    'map_path_to_uri',
    'pull',
    'select_wasm_layer',
    'wasm_path',
]
