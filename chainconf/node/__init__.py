"""
chainconf Node Identity
"""

from .identity import (
    NodeIdentity,
    NodeIdentityManager,
    PropertiesFileStore,
    configured_private_key,
)

__all__ = [
    "NodeIdentity",
    "NodeIdentityManager",
    "PropertiesFileStore",
    "configured_private_key",
]
