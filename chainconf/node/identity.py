"""
chainconf Node Identity (secp256k1)

Resolves the node's private key and its 64-byte node id:
- ``peer.privateKey`` from config when set (hex, exactly 32 bytes)
- otherwise a generated key persisted in ``<database.dir>/nodeId.properties``
  (``nodeIdPrivateKey`` and ``nodeId``, both hex), created on first use and
  reused on every later run
"""

import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from eth_utils import decode_hex

from ..config import keys
from ..config.merged import MergedConfig
from ..constants import (
    NODE_ID_FILE,
    NODE_ID_FILE_COMMENT,
    NODE_ID_PRIVATE_KEY_PROPERTY,
    NODE_ID_PROPERTY,
    PRIVATE_KEY_SIZE,
)
from ..crypto.keys import PrivateKey
from ..exceptions import InvalidKeyError, InvalidKeyLength
from ..logger import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Key-value file store
# ---------------------------------------------------------------------------

class PropertiesFileStore:
    """
    Flat ``key=value`` text file with ``#`` comments, readable by the
    Java ``Properties`` loader used by earlier node versions.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Dict[str, str]:
        props: Dict[str, str] = {}
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line[0] in "#!":
                    continue
                sep = min((i for i in (line.find("="), line.find(":")) if i >= 0), default=-1)
                if sep < 0:
                    props[line] = ""
                else:
                    props[line[:sep].strip()] = line[sep + 1:].strip()
        return props

    def save(self, props: Dict[str, str], comment: Optional[str] = None) -> None:
        """Write *props*, creating parent directories. The file is made owner-only."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            if comment:
                f.write(f"#{comment}\n")
            f.write(f"#{time.strftime('%a %b %d %H:%M:%S %Z %Y')}\n")
            for key, value in props.items():
                f.write(f"{key}={value}\n")
        os.chmod(self.path, 0o600)


StoreFactory = Callable[[Path], PropertiesFileStore]


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NodeIdentity:
    """Private key and the node id derived from it."""

    private_key: bytes
    node_id: bytes

    @classmethod
    def from_private_key(cls, private_key: bytes) -> "NodeIdentity":
        return cls(private_key=private_key, node_id=PrivateKey(private_key).node_id)

    @property
    def node_id_hex(self) -> str:
        return self.node_id.hex()

    def __repr__(self) -> str:
        return f"NodeIdentity(node_id={self.node_id_hex[:16]}...)"


def configured_private_key(config: MergedConfig) -> Optional[bytes]:
    """
    Decode ``peer.privateKey`` if it is set.

    Raises:
        InvalidKeyLength: If the value isn't hex of exactly 32 bytes
        InvalidKeyError: If the value is outside the secp256k1 key range
    """
    if not config.has_path(keys.PEER_PRIVATE_KEY):
        return None
    raw = config.get_string(keys.PEER_PRIVATE_KEY).strip()
    message = f"The {keys.PEER_PRIVATE_KEY} needs to be Hex encoded and {PRIVATE_KEY_SIZE} byte length"
    try:
        key_bytes = decode_hex(raw)
    except ValueError:
        raise InvalidKeyLength(keys.PEER_PRIVATE_KEY, raw, message) from None
    if len(key_bytes) != PRIVATE_KEY_SIZE:
        raise InvalidKeyLength(keys.PEER_PRIVATE_KEY, raw, message)
    try:
        PrivateKey(key_bytes)
    except InvalidKeyError as e:
        raise InvalidKeyError(f"The {keys.PEER_PRIVATE_KEY} is not a usable secp256k1 key: {e}") from e
    return key_bytes


class NodeIdentityManager:
    """
    Resolves node identity from a config snapshot.

    Results are cached per (configured key, storage directory), so pushing
    an override that changes either resolves again.
    """

    def __init__(self, store_factory: StoreFactory = PropertiesFileStore):
        self._store_factory = store_factory
        self._cache: Dict[Tuple[Optional[bytes], str], NodeIdentity] = {}
        self._lock = threading.Lock()

    def generated_key(self, storage_dir: Path) -> bytes:
        """
        Load the persisted node key from *storage_dir*, generating and
        persisting one on first use.
        """
        store = self._store_factory(Path(storage_dir) / NODE_ID_FILE)
        if store.exists():
            try:
                props = store.load()
            except OSError as e:
                raise InvalidKeyError(f"Can't read node key file {store.path}: {e}") from e
            raw = props.get(NODE_ID_PRIVATE_KEY_PROPERTY)
            if not raw:
                raise InvalidKeyError(
                    f"{store.path} has no '{NODE_ID_PRIVATE_KEY_PROPERTY}' property"
                )
            try:
                key_bytes = decode_hex(raw)
            except ValueError:
                raise InvalidKeyLength(NODE_ID_PRIVATE_KEY_PROPERTY, raw,
                                       f"{store.path} holds a malformed private key") from None
            if len(key_bytes) != PRIVATE_KEY_SIZE:
                raise InvalidKeyLength(NODE_ID_PRIVATE_KEY_PROPERTY, raw,
                                       f"{store.path} holds a private key of {len(key_bytes)} bytes")
            return key_bytes

        key = PrivateKey.generate()
        store.save(
            {
                NODE_ID_PRIVATE_KEY_PROPERTY: key.to_hex(with_prefix=False),
                NODE_ID_PROPERTY: key.node_id.hex(),
            },
            comment=NODE_ID_FILE_COMMENT,
        )
        logger.info("New nodeID generated: %s", key.node_id.hex())
        logger.info("Generated nodeID and its private key stored in %s", store.path)
        return key.to_bytes()

    def identity(self, config: MergedConfig) -> NodeIdentity:
        configured = configured_private_key(config)
        storage_dir = "" if configured is not None else config.get_string(keys.DATABASE_DIR)
        cache_key = (configured, storage_dir)
        with self._lock:
            cached = self._cache.get(cache_key)
            if cached is None:
                private_key = configured if configured is not None else self.generated_key(Path(storage_dir))
                cached = NodeIdentity.from_private_key(private_key)
                self._cache[cache_key] = cached
            return cached

    def private_key(self, config: MergedConfig) -> bytes:
        return self.identity(config).private_key

    def node_id(self, config: MergedConfig) -> bytes:
        return self.identity(config).node_id
