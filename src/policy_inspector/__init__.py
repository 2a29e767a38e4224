"""
Policy Inspector

Inspects policies distributed through container registries: reads the
metadata embedded in a policy module, discovers the Sigstore signatures
published next to it and renders both as a terminal report or a YAML
document. Policies can also be pulled and run against a request.
"""

__version__ = '0.3.2'

__all__ = ['__version__']
