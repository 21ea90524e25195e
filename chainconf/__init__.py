"""
chainconf Package

Layered, validated configuration for a blockchain node plus the values
derived from it (node identity, peer lists, network fork schedule).

Core imports are lazily loaded. For direct module access, import from
submodules:

    from chainconf.config import SystemProperties
    from chainconf.p2p import PeerSpec, TrustFilter
    from chainconf.exceptions import MergeValidationError
"""

# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'SystemProperties':
        from .config.properties import SystemProperties
        return SystemProperties
    elif name == 'ChainConfError':
        from .exceptions import ChainConfError
        return ChainConfError
    raise AttributeError(f"module 'chainconf' has no attribute {name!r}")

__all__ = ['SystemProperties', 'ChainConfError']
