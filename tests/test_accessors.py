"""
chainconf Tests: Typed Accessors and Validation Rules

Covers:
- Derived values (milliseconds, protocol defaults, optional keys)
- Mining accessors (coinbase, extra data, gas price)
- The validation registry
"""

import pytest

from chainconf.config.accessors import NO_FRAMING, P2P_VERSION, ConfigAccessors
from chainconf.config.sources import ConfigSource
from chainconf.config.validation import VALIDATION_RULES, run_checks, validate
from chainconf.exceptions import ConfigError, MergeValidationError


@pytest.fixture
def defaults(make_props):
    return make_props()


def with_overrides(props, data):
    """Accessors over *props* plus an unvalidated override layer."""
    return ConfigAccessors(props.config.push(ConfigSource(data, "test")))


class TestDerivedValues:

    def test_seconds_to_milliseconds(self, defaults):
        assert defaults.peer_connection_timeout() == 2000
        assert defaults.transaction_approve_timeout() == 15000

    def test_protocol_defaults(self, defaults):
        assert defaults.default_p2p_version() == P2P_VERSION
        assert defaults.rlpx_max_frame_size() == NO_FRAMING
        assert defaults.eip8() is True

    def test_optional_keys(self, defaults):
        assert defaults.sync_version() is None
        assert defaults.root_hash_start() is None
        assert defaults.vm_test_load_local() is False
        assert defaults.blocks_loader() == ""

    def test_optional_keys_set(self, defaults):
        view = with_overrides(defaults, {"sync.version": "62", "GitHubTests.VMTest.loadLocal": "true"})
        assert view.sync_version() == 62
        assert view.vm_test_load_local() is True

    def test_lists(self, defaults):
        assert defaults.peer_capabilities() == ["eth", "shh", "bzz"]
        assert len(defaults.peer_discovery_ip_list()) == 2

    def test_get_property_blank_is_default(self, defaults):
        assert defaults.get_property("peer.discovery.bind.ip", "x") == "x"
        assert defaults.get_property("no.such.key") is None
        assert defaults.get_property("hello.phrase") == "Dev"

    def test_cache_flush_memory_range(self, defaults):
        assert defaults.cache_flush_memory() == 0.7
        with pytest.raises(ConfigError):
            with_overrides(defaults, {"cache.flush.memory": 1.5}).cache_flush_memory()


class TestMining:

    def test_default_coinbase(self, defaults):
        assert defaults.miner_coinbase() == b"\x00" * 20

    def test_bad_coinbase(self, defaults):
        with pytest.raises(ConfigError, match="mine.coinbase"):
            with_overrides(defaults, {"mine.coinbase": "abcd"}).miner_coinbase()

    def test_extra_data_text(self, defaults):
        assert defaults.mine_extra_data() == b"chainconf"

    def test_extra_data_hex_wins(self, defaults):
        view = with_overrides(defaults, {"mine.extraDataHex": "0xdeadbeef"})
        assert view.mine_extra_data() == b"\xde\xad\xbe\xef"

    def test_extra_data_too_long(self, defaults):
        with pytest.raises(ConfigError, match="32 bytes"):
            with_overrides(defaults, {"mine.extraData": "x" * 33}).mine_extra_data()

    def test_min_gas_price(self, defaults):
        assert defaults.mine_min_gas_price() == 15_000_000_000
        with pytest.raises(ConfigError):
            with_overrides(defaults, {"mine.minGasPrice": "cheap"}).mine_min_gas_price()


class TestValidationRegistry:

    def test_rule_names_unique(self):
        names = [rule.name for rule in VALIDATION_RULES]
        assert len(names) == len(set(names))

    def test_defaults_pass(self, defaults):
        assert run_checks(defaults.config) == []

    def test_failures_collected(self, defaults):
        candidate = defaults.config.push(ConfigSource({
            "mine.coinbase": "00",
            "sync.peer.count": 0,
            "peer.discovery.workers": "many",
        }, "bad"))
        with pytest.raises(MergeValidationError) as exc:
            validate(candidate)
        assert {e.check_name for e in exc.value.errors} == {
            "mine.coinbase", "sync.peer.count", "peer.discovery.workers",
        }
        assert "3 validation check(s)" in str(exc.value)
