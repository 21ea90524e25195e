"""
chainconf Typed Accessors

Typed getters over one :class:`MergedConfig` snapshot. Every accessor is a
pure function of the snapshot: it reads, converts, range-checks, and raises
on a bad value. The validation registry calls a fixed subset of them
against every candidate configuration before it is installed.
"""

from typing import Any, List, Optional, Tuple

from eth_utils import decode_hex

from ..constants import COINBASE_SIZE, MAX_EXTRA_DATA_SIZE
from ..crypto.hashing import HashFunction
from ..exceptions import ConfigError
from ..network.selector import network_selection
from ..node.identity import configured_private_key
from ..p2p.peers import PeerSpec, TrustFilter, node_name_hash, parse_active_peers, parse_trusted_filter
from . import keys
from .merged import MergedConfig

# devp2p protocol version announced when peer.p2p.version is unset
P2P_VERSION = 4
# No RLPx framing unless peer.p2p.framing.maxSize is set
NO_FRAMING = 2 ** 31 - 1

DEFAULT_VMTEST_LOAD_LOCAL = False
DEFAULT_BLOCKS_LOADER = ""


def _at_least(key: str, value, minimum):
    if value < minimum:
        raise ConfigError(f"'{key}' must be >= {minimum}, got {value}")
    return value


def _between(key: str, value, low, high):
    if not low <= value <= high:
        raise ConfigError(f"'{key}' must be within [{low}, {high}], got {value}")
    return value


class ConfigAccessors:
    """Read-only typed view of a merged configuration."""

    def __init__(self, config: MergedConfig):
        self._config = config

    @property
    def config(self) -> MergedConfig:
        return self._config

    def get_property(self, key: str, default: Any = None) -> Any:
        """Raw value of *key*, or *default* when it is absent or blank."""
        value = self._config.lookup(key)
        if value is None:
            return default
        if isinstance(value, str) and not value.strip():
            return default
        return value

    # -- peer discovery ----------------------------------------------------

    def peer_discovery(self) -> bool:
        return self._config.get_bool(keys.PEER_DISCOVERY_ENABLED)

    def peer_discovery_persist(self) -> bool:
        return self._config.get_bool("peer.discovery.persist")

    def peer_discovery_workers(self) -> int:
        return _at_least("peer.discovery.workers", self._config.get_int("peer.discovery.workers"), 1)

    def peer_discovery_touch_period(self) -> int:
        return _at_least("peer.discovery.touchPeriod", self._config.get_int("peer.discovery.touchPeriod"), 0)

    def peer_discovery_touch_max_nodes(self) -> int:
        return _at_least("peer.discovery.touchMaxNodes", self._config.get_int("peer.discovery.touchMaxNodes"), 0)

    def peer_discovery_ip_list(self) -> List[str]:
        return self._config.get_string_list("peer.discovery.ip.list")

    def is_public_home_node(self) -> bool:
        return self._config.get_bool("peer.discovery.public.home.node")

    # -- peer connection ---------------------------------------------------

    def peer_connection_timeout(self) -> int:
        """Connection timeout in milliseconds (configured in seconds)."""
        return _at_least("peer.connection.timeout", self._config.get_int("peer.connection.timeout"), 0) * 1000

    def peer_channel_read_timeout(self) -> int:
        return _at_least("peer.channel.read.timeout", self._config.get_int("peer.channel.read.timeout"), 0)

    def default_p2p_version(self) -> int:
        if not self._config.has_path("peer.p2p.version"):
            return P2P_VERSION
        return self._config.get_int("peer.p2p.version")

    def rlpx_max_frame_size(self) -> int:
        if not self._config.has_path("peer.p2p.framing.maxSize"):
            return NO_FRAMING
        return _at_least("peer.p2p.framing.maxSize", self._config.get_int("peer.p2p.framing.maxSize"), 1)

    def eip8(self) -> bool:
        return self._config.get_bool("peer.p2p.eip8")

    def listen_port(self) -> int:
        return _between(keys.PEER_LISTEN_PORT, self._config.get_int(keys.PEER_LISTEN_PORT), 1, 65535)

    def network_id(self) -> int:
        return _at_least(keys.PEER_NETWORK_ID, self._config.get_int(keys.PEER_NETWORK_ID), 0)

    def max_active_peers(self) -> int:
        return _at_least(keys.PEER_MAX_ACTIVE, self._config.get_int(keys.PEER_MAX_ACTIVE), 0)

    def peer_capabilities(self) -> List[str]:
        return self._config.get_string_list("peer.capabilities")

    # -- peer lists and identity -------------------------------------------

    def peer_active(self) -> List[PeerSpec]:
        return parse_active_peers(self._config)

    def peer_trusted(self) -> TrustFilter:
        return parse_trusted_filter(self._config)

    def node_name_hash(self) -> HashFunction:
        return node_name_hash(self._config)

    def configured_private_key(self) -> Optional[bytes]:
        """``peer.privateKey`` decoded, or None when the key is generated."""
        return configured_private_key(self._config)

    def network_selection(self) -> Tuple[str, str]:
        return network_selection(self._config)

    # -- database / storage ------------------------------------------------

    def database_dir(self) -> str:
        return self._config.get_string(keys.DATABASE_DIR)

    def database_reset(self) -> bool:
        return self._config.get_bool(keys.DATABASE_RESET)

    def key_value_data_source(self) -> str:
        return self._config.get_string("keyvalue.datasource")

    def is_redis_enabled(self) -> bool:
        return self._config.get_bool("redis.enabled")

    def details_in_memory_storage_limit(self) -> int:
        return _at_least("details.inmemory.storage.limit",
                         self._config.get_int("details.inmemory.storage.limit"), 0)

    def cache_flush_memory(self) -> float:
        return _between("cache.flush.memory", self._config.get_float("cache.flush.memory"), 0.0, 1.0)

    def cache_flush_blocks(self) -> int:
        return _at_least("cache.flush.blocks", self._config.get_int("cache.flush.blocks"), 0)

    # -- transactions ------------------------------------------------------

    def transaction_approve_timeout(self) -> int:
        """Approve timeout in milliseconds (configured in seconds)."""
        return _at_least("transaction.approve.timeout",
                         self._config.get_int("transaction.approve.timeout"), 0) * 1000

    def tx_outdated_threshold(self) -> int:
        return _at_least("transaction.outdated.threshold",
                         self._config.get_int("transaction.outdated.threshold"), 0)

    # -- dump / trace ------------------------------------------------------

    def dump_full(self) -> bool:
        return self._config.get_bool("dump.full")

    def dump_dir(self) -> str:
        return self._config.get_string("dump.dir")

    def dump_style(self) -> str:
        return self._config.get_string("dump.style")

    def dump_block(self) -> int:
        return self._config.get_int("dump.block")

    def dump_clean_on_restart(self) -> bool:
        return self._config.get_bool("dump.clean.on.restart")

    def trace_start_block(self) -> int:
        return self._config.get_int("trace.startblock")

    def record_blocks(self) -> bool:
        return self._config.get_bool("record.blocks")

    def samples_dir(self) -> str:
        return self._config.get_string("samples.dir")

    # -- vm ----------------------------------------------------------------

    def play_vm(self) -> bool:
        return self._config.get_bool("play.vm")

    def vm_trace(self) -> bool:
        return self._config.get_bool("vm.structured.trace")

    def vm_trace_compressed(self) -> bool:
        return self._config.get_bool("vm.structured.compressed")

    def vm_trace_init_storage_limit(self) -> int:
        return _at_least("vm.structured.initStorageLimit",
                         self._config.get_int("vm.structured.initStorageLimit"), 0)

    def vm_trace_dir(self) -> str:
        return self._config.get_string("vm.structured.dir")

    # -- sync --------------------------------------------------------------

    def blockchain_only(self) -> bool:
        return self._config.get_bool("blockchain.only")

    def is_sync_enabled(self) -> bool:
        return self._config.get_bool(keys.SYNC_ENABLED)

    def max_hashes_ask(self) -> int:
        return _at_least("sync.max.hashes.ask", self._config.get_int("sync.max.hashes.ask"), 1)

    def max_blocks_ask(self) -> int:
        return _at_least("sync.max.blocks.ask", self._config.get_int("sync.max.blocks.ask"), 1)

    def sync_peer_count(self) -> int:
        return _at_least("sync.peer.count", self._config.get_int("sync.peer.count"), 1)

    def sync_version(self) -> Optional[int]:
        if not self._config.has_path("sync.version"):
            return None
        return self._config.get_int("sync.version")

    def exit_on_block_conflict(self) -> bool:
        return self._config.get_bool("sync.exitOnBlockConflict")

    # -- misc --------------------------------------------------------------

    def coinbase_secret(self) -> str:
        return self._config.get_string("coinbase.secret")

    def hello_phrase(self) -> str:
        return self._config.get_string("hello.phrase")

    def root_hash_start(self) -> Optional[str]:
        if not self._config.has_path("root.hash.start"):
            return None
        return self._config.get_string("root.hash.start")

    def genesis_info(self) -> str:
        return self._config.get_string(keys.GENESIS)

    # -- mining ------------------------------------------------------------

    def miner_start(self) -> bool:
        return self._config.get_bool("mine.start")

    def miner_coinbase(self) -> bytes:
        raw = self._config.get_string("mine.coinbase")
        try:
            coinbase = decode_hex(raw.strip())
        except ValueError:
            raise ConfigError(f"mine.coinbase has invalid value: '{raw}'") from None
        if len(coinbase) != COINBASE_SIZE:
            raise ConfigError(f"mine.coinbase has invalid value: '{raw}'")
        return coinbase

    def mine_extra_data(self) -> bytes:
        if self._config.has_path("mine.extraDataHex"):
            raw = self._config.get_string("mine.extraDataHex")
            try:
                data = decode_hex(raw.strip())
            except ValueError:
                raise ConfigError(f"mine.extraDataHex has invalid value: '{raw}'") from None
        else:
            data = self._config.get_string("mine.extraData").encode("utf-8")
        if len(data) > MAX_EXTRA_DATA_SIZE:
            raise ConfigError(f"mine.extraData exceed {MAX_EXTRA_DATA_SIZE} bytes length: {len(data)}")
        return data

    def mine_min_gas_price(self) -> int:
        raw = self._config.get_string("mine.minGasPrice")
        try:
            return _at_least("mine.minGasPrice", int(raw.strip()), 0)
        except ValueError:
            raise ConfigError(f"mine.minGasPrice has invalid value: '{raw}'") from None

    def mine_min_block_timeout_msec(self) -> int:
        return _at_least("mine.minBlockTimeoutMsec", self._config.get_int("mine.minBlockTimeoutMsec"), 0)

    def mine_cpu_threads(self) -> int:
        return _at_least("mine.cpuMineThreads", self._config.get_int("mine.cpuMineThreads"), 0)

    def is_mine_full_dataset(self) -> bool:
        return self._config.get_bool("mine.fullDataSet")

    # -- testing -----------------------------------------------------------

    def vm_test_load_local(self) -> bool:
        if not self._config.has_path("GitHubTests.VMTest.loadLocal"):
            return DEFAULT_VMTEST_LOAD_LOCAL
        return self._config.get_bool("GitHubTests.VMTest.loadLocal")

    def blocks_loader(self) -> str:
        if not self._config.has_path("blocks.loader"):
            return DEFAULT_BLOCKS_LOADER
        return self._config.get_string("blocks.loader")
