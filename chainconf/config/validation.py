"""
chainconf Config Validation

A fixed registry of named checks runs against every candidate configuration
(at construction and before each override is installed). Each check calls
one typed accessor on the candidate; a check fails when the accessor
raises. All failures are collected into one :class:`MergeValidationError`.

Bind-IP and external-IP autodetection are not registered: they probe the
network. Node key generation is not registered either; only an explicitly
configured ``peer.privateKey`` is checked.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Tuple

from ..exceptions import ChainConfError, MergeValidationError, ValidationError
from .accessors import ConfigAccessors
from .merged import MergedConfig


@dataclass(frozen=True)
class ValidationRule:
    """A named, side-effect-free check over a config snapshot."""

    name: str
    check: Callable[[ConfigAccessors], Any]


def _rule(name: str, accessor: Callable[[ConfigAccessors], Any]) -> ValidationRule:
    return ValidationRule(name, accessor)


A = ConfigAccessors

VALIDATION_RULES: Tuple[ValidationRule, ...] = (
    _rule("peer.discovery.enabled", A.peer_discovery),
    _rule("peer.discovery.persist", A.peer_discovery_persist),
    _rule("peer.discovery.workers", A.peer_discovery_workers),
    _rule("peer.discovery.touchPeriod", A.peer_discovery_touch_period),
    _rule("peer.discovery.touchMaxNodes", A.peer_discovery_touch_max_nodes),
    _rule("peer.discovery.ip.list", A.peer_discovery_ip_list),
    _rule("peer.discovery.public.home.node", A.is_public_home_node),
    _rule("peer.connection.timeout", A.peer_connection_timeout),
    _rule("peer.channel.read.timeout", A.peer_channel_read_timeout),
    _rule("peer.p2p.version", A.default_p2p_version),
    _rule("peer.p2p.framing.maxSize", A.rlpx_max_frame_size),
    _rule("peer.p2p.eip8", A.eip8),
    _rule("peer.listen.port", A.listen_port),
    _rule("peer.networkId", A.network_id),
    _rule("peer.maxActivePeers", A.max_active_peers),
    _rule("peer.capabilities", A.peer_capabilities),
    _rule("peer.nodeNameHash", A.node_name_hash),
    _rule("peer.active", A.peer_active),
    _rule("peer.trusted", A.peer_trusted),
    _rule("peer.privateKey", A.configured_private_key),
    _rule("blockchain.config", A.network_selection),
    _rule("database.dir", A.database_dir),
    _rule("database.reset", A.database_reset),
    _rule("keyvalue.datasource", A.key_value_data_source),
    _rule("redis.enabled", A.is_redis_enabled),
    _rule("details.inmemory.storage.limit", A.details_in_memory_storage_limit),
    _rule("cache.flush.memory", A.cache_flush_memory),
    _rule("cache.flush.blocks", A.cache_flush_blocks),
    _rule("transaction.approve.timeout", A.transaction_approve_timeout),
    _rule("transaction.outdated.threshold", A.tx_outdated_threshold),
    _rule("dump.full", A.dump_full),
    _rule("dump.dir", A.dump_dir),
    _rule("dump.style", A.dump_style),
    _rule("dump.block", A.dump_block),
    _rule("dump.clean.on.restart", A.dump_clean_on_restart),
    _rule("trace.startblock", A.trace_start_block),
    _rule("record.blocks", A.record_blocks),
    _rule("play.vm", A.play_vm),
    _rule("vm.structured.trace", A.vm_trace),
    _rule("vm.structured.compressed", A.vm_trace_compressed),
    _rule("vm.structured.initStorageLimit", A.vm_trace_init_storage_limit),
    _rule("vm.structured.dir", A.vm_trace_dir),
    _rule("blockchain.only", A.blockchain_only),
    _rule("sync.enabled", A.is_sync_enabled),
    _rule("sync.max.hashes.ask", A.max_hashes_ask),
    _rule("sync.max.blocks.ask", A.max_blocks_ask),
    _rule("sync.peer.count", A.sync_peer_count),
    _rule("sync.exitOnBlockConflict", A.exit_on_block_conflict),
    _rule("coinbase.secret", A.coinbase_secret),
    _rule("hello.phrase", A.hello_phrase),
    _rule("root.hash.start", A.root_hash_start),
    _rule("genesis", A.genesis_info),
    _rule("mine.start", A.miner_start),
    _rule("mine.coinbase", A.miner_coinbase),
    _rule("mine.extraData", A.mine_extra_data),
    _rule("mine.minGasPrice", A.mine_min_gas_price),
    _rule("mine.minBlockTimeoutMsec", A.mine_min_block_timeout_msec),
    _rule("mine.cpuMineThreads", A.mine_cpu_threads),
    _rule("mine.fullDataSet", A.is_mine_full_dataset),
)

del A


def run_checks(config: MergedConfig, rules: Tuple[ValidationRule, ...] = VALIDATION_RULES) -> List[ValidationError]:
    """Run every rule against *config* and return the failures."""
    view = ConfigAccessors(config)
    errors: List[ValidationError] = []
    for rule in rules:
        try:
            rule.check(view)
        except (ChainConfError, ValueError, KeyError) as e:
            errors.append(ValidationError(rule.name, e))
    return errors


def validate(config: MergedConfig, rules: Tuple[ValidationRule, ...] = VALIDATION_RULES) -> None:
    """
    Validate *config* as a whole.

    Raises:
        MergeValidationError: Listing every failed check
    """
    errors = run_checks(config, rules)
    if errors:
        raise MergeValidationError(errors)
