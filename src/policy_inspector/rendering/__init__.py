"""
Policy Inspector - Rendering Module

This module renders policy metadata and signature manifests either as YAML
documents or as human readable terminal reports.
"""

from .formats import OutputFormat
from .markdown import MarkdownRenderer
from .printers import (
    get_printer,
    get_signatures_printer,
    render_metadata,
    render_signatures,
)

__all__ = [
    'OutputFormat',
    'MarkdownRenderer',
    'get_printer',
    'get_signatures_printer',
    'render_metadata',
    'render_signatures',
]
