"""
chainconf Crypto Module

Cryptographic primitives behind node identity:
- secp256k1 keys (node private key, 64-byte node id)
- Hash strategies for name-derived node ids
"""

from .keys import PrivateKey, PublicKey, generate_keypair
from .hashing import (
    keccak256,
    sha256,
    blake3_256,
    NODE_NAME_HASHES,
    DEFAULT_NODE_NAME_HASH,
    get_node_name_hash,
)

__all__ = [
    # Keys (secp256k1)
    "PrivateKey",
    "PublicKey",
    "generate_keypair",
    # Hashing
    "keccak256",
    "sha256",
    "blake3_256",
    "NODE_NAME_HASHES",
    "DEFAULT_NODE_NAME_HASH",
    "get_node_name_hash",
]
