"""
chainconf Peer Lists

Parses the ``peer.active`` and ``peer.trusted`` config lists.

Active peers come in two shapes:
- ``{url = "enode://<node id hex>@host:port"}`` (``enode://`` is prepended
  when missing)
- ``{ip = "...", port = 30303, nodeId = "<64-byte hex>"}`` or the same with
  ``nodeName``; a node name is hashed into a private key whose public key
  becomes the node id

Trusted peers are ``{nodeId = "...", ip = "10.0.0.0/8"}`` filter entries,
either field optional.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

from eth_utils import decode_hex

from ..config import keys
from ..config.merged import MergedConfig, ValueType, convert_value
from ..constants import ENODE_SCHEME, NODE_ID_SIZE
from ..crypto.hashing import DEFAULT_NODE_NAME_HASH, HashFunction, get_node_name_hash
from ..crypto.keys import PrivateKey
from ..exceptions import InvalidNodeId, UnexpectedPeerEntry
from ..logger import get_logger

logger = get_logger(__name__)

IpNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _decode_node_id(raw: str, entry: Any) -> bytes:
    try:
        return decode_hex(raw.strip())
    except ValueError:
        raise InvalidNodeId(raw, entry) from None


def node_id_from_name(node_name: str, hash_fn: Optional[HashFunction] = None) -> bytes:
    """
    Derive a 64-byte node id from a human-readable name.

    The UTF-8 name is hashed into a private key and the node id is that
    key's public key, so the same name always maps to the same id.
    """
    hash_fn = hash_fn or get_node_name_hash(DEFAULT_NODE_NAME_HASH)
    return PrivateKey(hash_fn(node_name.encode("utf-8"))).node_id


def node_name_hash(config: MergedConfig) -> HashFunction:
    """Hash strategy for name-derived node ids (``peer.nodeNameHash``)."""
    name = config.lookup(keys.PEER_NODE_NAME_HASH) or DEFAULT_NODE_NAME_HASH
    return get_node_name_hash(str(name).strip())


# ---------------------------------------------------------------------------
# PeerSpec
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PeerSpec:
    """
    An active peer from config.

    URI-form peers keep the ``url`` as configured, with ``host``, ``port``
    and ``node_id`` parsed from it. Structured peers have all three and no
    ``url``.
    """

    host: Optional[str]
    port: Optional[int]
    node_id: Optional[bytes] = None
    url: Optional[str] = None

    @classmethod
    def from_url(cls, url: str) -> "PeerSpec":
        """
        Parse an ``enode://<node id hex>@host:port`` URL.

        Raises:
            InvalidNodeId: If the user part isn't hex
            UnexpectedPeerEntry: If the node id, host or port is missing
        """
        url = url.strip()
        if not url.startswith(ENODE_SCHEME):
            url = ENODE_SCHEME + url
        parts = urlsplit(url)
        try:
            port = parts.port
        except ValueError:
            raise UnexpectedPeerEntry("Invalid port in peer URL", url) from None
        if not parts.username:
            raise UnexpectedPeerEntry("Peer URL needs a node id before '@'", url)
        if not parts.hostname or port is None:
            raise UnexpectedPeerEntry("Peer URL needs a host and port", url)
        node_id = _decode_node_id(parts.username, url)
        return cls(host=parts.hostname, port=port, node_id=node_id, url=url)

    @property
    def is_url(self) -> bool:
        return self.url is not None

    @property
    def endpoint(self) -> Tuple[Optional[str], Optional[int]]:
        return (self.host, self.port)

    def to_url(self) -> str:
        if self.url is not None:
            return self.url
        return f"{ENODE_SCHEME}{self.node_id.hex()}@{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.to_url()


def parse_peer_entry(entry: Mapping[str, Any], hash_fn: Optional[HashFunction] = None) -> PeerSpec:
    """
    Parse one ``peer.active`` entry.

    Raises:
        InvalidNodeId: If ``nodeId`` isn't hex of exactly 64 bytes
        UnexpectedPeerEntry: If the entry matches neither shape
    """
    if entry.get("url") is not None:
        return PeerSpec.from_url(convert_value("url", entry["url"], ValueType.STRING))

    if entry.get("ip") is None:
        raise UnexpectedPeerEntry(f"Unexpected element within '{keys.PEER_ACTIVE}' config list", entry)

    ip = convert_value("ip", entry["ip"], ValueType.STRING).strip()
    if entry.get("port") is None:
        raise UnexpectedPeerEntry("Peer entry with 'ip' needs a 'port'", entry)
    port = convert_value("port", entry["port"], ValueType.INT)

    if entry.get("nodeId") is not None:
        raw = convert_value("nodeId", entry["nodeId"], ValueType.STRING)
        node_id = _decode_node_id(raw, entry)
        if len(node_id) != NODE_ID_SIZE:
            raise InvalidNodeId(raw, entry)
    elif entry.get("nodeName") is not None:
        node_name = convert_value("nodeName", entry["nodeName"], ValueType.STRING).strip()
        node_id = node_id_from_name(node_name, hash_fn)
    else:
        raise UnexpectedPeerEntry("Either nodeId or nodeName should be specified", entry)

    return PeerSpec(host=ip, port=port, node_id=node_id)


def parse_active_peers(config: MergedConfig) -> List[PeerSpec]:
    """Parse ``peer.active``; an absent key means no active peers."""
    if not config.has_path(keys.PEER_ACTIVE):
        return []
    hash_fn = node_name_hash(config)
    return [parse_peer_entry(entry, hash_fn) for entry in config.get_struct_list(keys.PEER_ACTIVE)]


# ---------------------------------------------------------------------------
# TrustFilter
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrustEntry:
    """One trusted-peer pattern; a ``None`` field is not checked."""

    node_id: Optional[bytes] = None
    ip_mask: Optional[str] = None
    network: Optional[IpNetwork] = field(default=None, compare=False, repr=False)

    @classmethod
    def create(cls, node_id: Optional[bytes] = None, ip_mask: Optional[str] = None) -> "TrustEntry":
        network = None
        if ip_mask is not None:
            try:
                network = ipaddress.ip_network(ip_mask, strict=False)
            except ValueError as e:
                raise UnexpectedPeerEntry(f"Invalid trusted ip mask '{ip_mask}' ({e})", ip_mask) from None
        return cls(node_id=node_id, ip_mask=ip_mask, network=network)

    @property
    def is_empty(self) -> bool:
        return self.node_id is None and self.ip_mask is None

    def accepts(self, node_id: Optional[bytes], host: Optional[str]) -> bool:
        # An entry that specifies nothing never matches
        if self.is_empty:
            return False
        if self.node_id is not None and self.node_id != node_id:
            return False
        if self.network is not None:
            if host is None:
                return False
            try:
                address = ipaddress.ip_address(host)
            except ValueError:
                return False
            if address.version != self.network.version or address not in self.network:
                return False
        return True


class TrustFilter:
    """Peers accepted by at least one entry are trusted."""

    def __init__(self, entries: Optional[List[TrustEntry]] = None):
        self.entries: List[TrustEntry] = list(entries or [])

    def add(self, node_id: Optional[bytes] = None, ip_mask: Optional[str] = None) -> TrustEntry:
        entry = TrustEntry.create(node_id, ip_mask)
        self.entries.append(entry)
        return entry

    def accept(self, node_id: Optional[bytes], host: Optional[str]) -> bool:
        return any(entry.accepts(node_id, host) for entry in self.entries)

    def accept_peer(self, peer: PeerSpec) -> bool:
        return self.accept(peer.node_id, peer.host)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"TrustFilter({self.entries!r})"


def parse_trusted_filter(config: MergedConfig) -> TrustFilter:
    """
    Parse ``peer.trusted``.

    Node ids are hex-decoded but their length is not checked, unlike
    ``peer.active``.
    """
    trust_filter = TrustFilter()
    if not config.has_path(keys.PEER_TRUSTED):
        return trust_filter

    for entry in config.get_struct_list(keys.PEER_TRUSTED):
        node_id = None
        ip_mask = None
        if entry.get("nodeId") is not None:
            node_id = _decode_node_id(convert_value("nodeId", entry["nodeId"], ValueType.STRING), entry)
        if entry.get("ip") is not None:
            ip_mask = convert_value("ip", entry["ip"], ValueType.STRING).strip()
        added = trust_filter.add(node_id, ip_mask)
        if added.is_empty:
            logger.warning("Trusted peer entry %s has neither nodeId nor ip and matches nothing", dict(entry))
    return trust_filter
