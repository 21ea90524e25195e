"""
chainconf Tests: Network Config Selection

Covers:
- Built-in fork schedules and block lookup
- blockchain.config.name / blockchain.config.class exclusivity
- Plugin registry and import-path loading
- Memoization in the selector and through SystemProperties
"""

import pytest

from chainconf.config.merged import MergedConfig
from chainconf.config.sources import ConfigSource
from chainconf.exceptions import ConfigError, MergeValidationError
from chainconf.network import (
    BaseNetworkConfig,
    MainNetConfig,
    MordenNetConfig,
    NetworkConfigSelector,
    TestNetConfig,
    load_network_config,
    network_selection,
    register_network_config,
    resolve_network_config,
    unregister_network_config,
)
from chainconf.network.config import EIP150, FRONTIER, HOMESTEAD


def config_of(data):
    return MergedConfig([ConfigSource(data, "test")])


class PrivateNetConfig(BaseNetworkConfig):
    name = "private"

    def __init__(self):
        super().__init__()
        self.add(0, HOMESTEAD)
        self.add(100, EIP150)


class NeedsArguments(BaseNetworkConfig):
    def __init__(self, fork):
        super().__init__()
        self.add(0, fork)


class NotANetwork:
    pass


@pytest.fixture
def registered():
    names = []

    def _register(name, factory):
        register_network_config(name, factory)
        names.append(name)
    yield _register
    for name in names:
        unregister_network_config(name)


# ============================================================================
# Fork schedules
# ============================================================================

class TestForkSchedules:

    def test_main_net_boundaries(self):
        main = MainNetConfig()
        assert main.get_config_for_block(0) is FRONTIER
        assert main.get_config_for_block(1_149_999) is FRONTIER
        assert main.get_config_for_block(1_150_000) is HOMESTEAD
        assert main.get_config_for_block(2_463_000).eip150
        assert main.get_config_for_block(10_000_000).eip155

    def test_morden(self):
        morden = MordenNetConfig()
        assert morden.get_config_for_block(493_999) is FRONTIER
        assert morden.get_config_for_block(494_000) is HOMESTEAD

    def test_testnet_homestead_from_genesis(self):
        assert TestNetConfig().get_config_for_block(0) is HOMESTEAD

    def test_schedule_ascending(self):
        blocks = [start for start, _ in MainNetConfig().schedule()]
        assert blocks == sorted(blocks)

    def test_out_of_order_add(self):
        net = PrivateNetConfig()
        with pytest.raises(ValueError):
            net.add(50, FRONTIER)

    def test_negative_block(self):
        with pytest.raises(ValueError):
            MainNetConfig().get_config_for_block(-1)


# ============================================================================
# Selection
# ============================================================================

class TestNetworkSelection:

    def test_default_is_main(self):
        assert network_selection(config_of({})) == ("name", "main")
        assert isinstance(resolve_network_config(config_of({})), MainNetConfig)

    def test_blank_name_counts_as_unset(self):
        config = config_of({"blockchain.config.name": "  ", "blockchain.config.class": "x:Y"})
        assert network_selection(config) == ("class", "x:Y")

    def test_by_name(self):
        assert isinstance(resolve_network_config(config_of({"blockchain.config.name": "morden"})),
                          MordenNetConfig)

    def test_both_set(self):
        config = config_of({"blockchain": {"config": {"name": "main", "class": "x:Y"}}})
        with pytest.raises(ConfigError, match="Only one of two options"):
            network_selection(config)

    def test_unknown_name(self):
        with pytest.raises(ConfigError, match="Unknown value"):
            network_selection(config_of({"blockchain.config.name": "ropsten"}))

    def test_registered_class(self, registered):
        registered("private-net", PrivateNetConfig)
        net = resolve_network_config(config_of({"blockchain.config.class": "private-net"}))
        assert isinstance(net, PrivateNetConfig)
        assert net.get_config_for_block(100) is EIP150

    def test_import_path_with_colon(self):
        net = load_network_config("chainconf.network.config:TestNetConfig")
        assert isinstance(net, TestNetConfig)

    def test_import_path_dotted(self):
        net = load_network_config("chainconf.network.config.MordenNetConfig")
        assert isinstance(net, MordenNetConfig)

    def test_class_not_found(self):
        with pytest.raises(ConfigError, match="not found"):
            load_network_config("chainconf.network.config:NoSuchConfig")
        with pytest.raises(ConfigError, match="not found"):
            load_network_config("no_such_module_xyz:Config")

    def test_class_needs_arguments(self, registered):
        registered("needs-args", NeedsArguments)
        with pytest.raises(ConfigError, match="couldn't be instantiated"):
            load_network_config("needs-args")

    def test_not_a_network_config(self, registered):
        registered("not-a-network", NotANetwork)
        with pytest.raises(ConfigError, match="is not an instance"):
            load_network_config("not-a-network")


class TestNetworkConfigSelector:

    def test_memoized(self):
        selector = NetworkConfigSelector()
        first = selector.resolve(config_of({}))
        assert selector.resolve(config_of({"blockchain.config.name": "morden"})) is first
        assert selector.resolved

    def test_set_overrides(self):
        selector = NetworkConfigSelector()
        custom = PrivateNetConfig()
        selector.set(custom)
        assert selector.resolve(config_of({})) is custom


class TestThroughProperties:

    def test_ambiguous_selection_fails_validation(self, make_props):
        with pytest.raises(MergeValidationError) as exc:
            make_props({"blockchain.config.name": "main", "blockchain.config.class": "x:Y"})
        assert [e.check_name for e in exc.value.errors] == ["blockchain.config"]

    def test_get_and_set(self, make_props):
        props = make_props({"blockchain.config.name": "testnet"})
        net = props.get_blockchain_config()
        assert isinstance(net, TestNetConfig)
        assert props.get_blockchain_config() is net

        custom = PrivateNetConfig()
        props.set_blockchain_config(custom)
        assert props.get_blockchain_config() is custom
