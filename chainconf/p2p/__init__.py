"""
chainconf P2P Settings

Peer lists parsed from config and IP autodetection.
"""

from .peers import (
    PeerSpec,
    TrustEntry,
    TrustFilter,
    node_id_from_name,
    parse_peer_entry,
    parse_active_peers,
    parse_trusted_filter,
)
from .ip import IpResolver, NetworkIpResolver

__all__ = [
    "PeerSpec",
    "TrustEntry",
    "TrustFilter",
    "node_id_from_name",
    "parse_peer_entry",
    "parse_active_peers",
    "parse_trusted_filter",
    "IpResolver",
    "NetworkIpResolver",
]
