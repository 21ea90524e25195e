"""
chainconf Crypto Hashing Module

Hash functions used to turn a human-readable node name into a private key
seed. Which one is used is configurable (``peer.nodeNameHash``) so that
name-derived node ids can be kept compatible with whichever hash a network
settled on.
"""

import hashlib
from typing import Callable, Dict

import blake3
from eth_utils import keccak


HashFunction = Callable[[bytes], bytes]


def keccak256(data: bytes) -> bytes:
    """Keccak-256 (pre-standard SHA3), 32-byte digest."""
    return keccak(data)


def sha256(data: bytes) -> bytes:
    """SHA-256, 32-byte digest."""
    return hashlib.sha256(data).digest()


def blake3_256(data: bytes) -> bytes:
    """BLAKE3 with the default 32-byte output."""
    return blake3.blake3(data).digest()


# Every strategy must yield 32 bytes, the size of a private key
NODE_NAME_HASHES: Dict[str, HashFunction] = {
    "keccak256": keccak256,
    "sha256": sha256,
    "blake3": blake3_256,
}

DEFAULT_NODE_NAME_HASH = "keccak256"


def get_node_name_hash(name: str) -> HashFunction:
    """
    Look up a node-name hash strategy.

    Raises:
        KeyError: If no strategy is registered under *name*
    """
    try:
        return NODE_NAME_HASHES[name]
    except KeyError:
        raise KeyError(
            f"Unknown node name hash '{name}', expected one of {sorted(NODE_NAME_HASHES)}"
        ) from None
