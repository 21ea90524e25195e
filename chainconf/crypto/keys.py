"""
chainconf Node Keys

secp256k1 keys behind node identity, on top of ``eth_keys``. A node id is
the 64-byte uncompressed public key (x || y) without the ``0x04`` marker.
"""

import secrets
from typing import Tuple, Union

from eth_keys.datatypes import PrivateKey as EthPrivateKey, PublicKey as EthPublicKey
from eth_keys.exceptions import ValidationError as EthValidationError
from eth_utils import decode_hex

from ..constants import NODE_ID_SIZE, PRIVATE_KEY_SIZE
from ..exceptions import InvalidKeyError

UNCOMPRESSED_MARKER = 0x04


class PublicKey:
    """Node public key; ``to_bytes()`` is the node id."""

    def __init__(self, key: Union[EthPublicKey, bytes]):
        if isinstance(key, EthPublicKey):
            self._key = key
            return
        if not isinstance(key, bytes):
            raise InvalidKeyError(f"Public key must be bytes, not {type(key).__name__}")
        if len(key) == NODE_ID_SIZE + 1 and key[0] == UNCOMPRESSED_MARKER:
            key = key[1:]
        if len(key) != NODE_ID_SIZE:
            raise InvalidKeyError(f"Public key must be {NODE_ID_SIZE} bytes, got {len(key)}")
        try:
            self._key = EthPublicKey(key)
        except EthValidationError as e:
            raise InvalidKeyError(f"Invalid public key: {e}") from e

    def to_bytes(self) -> bytes:
        return self._key.to_bytes()

    def to_hex(self, with_prefix: bool = True) -> str:
        return ("0x" if with_prefix else "") + self.to_bytes().hex()

    def __eq__(self, other) -> bool:
        return isinstance(other, PublicKey) and self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"PublicKey({self.to_hex(with_prefix=False)[:16]}...)"


class PrivateKey:
    """
    Node private key.

    Raises:
        InvalidKeyError: If the bytes aren't a valid 32-byte secp256k1 scalar
    """

    def __init__(self, key_bytes: bytes):
        if len(key_bytes) != PRIVATE_KEY_SIZE:
            raise InvalidKeyError(
                f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(key_bytes)}"
            )
        try:
            self._key = EthPrivateKey(key_bytes)
        except EthValidationError as e:
            raise InvalidKeyError(f"Invalid private key: {e}") from e

    @classmethod
    def from_hex(cls, value: str) -> "PrivateKey":
        """Parse hex, with or without ``0x``."""
        try:
            return cls(decode_hex(value.strip()))
        except ValueError as e:
            raise InvalidKeyError(f"Private key is not hex: {e}") from e

    @classmethod
    def generate(cls) -> "PrivateKey":
        # Random bytes at or above the curve order are rejected; draw again
        while True:
            try:
                return cls(secrets.token_bytes(PRIVATE_KEY_SIZE))
            except InvalidKeyError:
                continue

    @property
    def public_key(self) -> PublicKey:
        return PublicKey(self._key.public_key)

    @property
    def node_id(self) -> bytes:
        return self.public_key.to_bytes()

    def to_bytes(self) -> bytes:
        return self._key.to_bytes()

    def to_hex(self, with_prefix: bool = True) -> str:
        return ("0x" if with_prefix else "") + self.to_bytes().hex()

    def __eq__(self, other) -> bool:
        return isinstance(other, PrivateKey) and self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        # Never print the key itself
        return f"PrivateKey(node_id={self.node_id.hex()[:16]}...)"


def generate_keypair() -> Tuple[PrivateKey, PublicKey]:
    """Fresh random (private, public) key pair."""
    private_key = PrivateKey.generate()
    return private_key, private_key.public_key
