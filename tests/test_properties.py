"""
chainconf Tests: SystemProperties

Covers:
- Defaults and layer precedence through the facade
- Validation at construction and before every override
- override_params forms and the convenience setters
- Bind/external IP autodetection and fallbacks
- Genesis memoization, version accessors, dump
"""

import json

import pytest

from chainconf.config.properties import SystemProperties
from chainconf.config.sources import ConfigSource
from chainconf.exceptions import ConfigError, MergeValidationError

from conftest import FakeIpResolver


# ============================================================================
# Construction and precedence
# ============================================================================

class TestConstruction:

    def test_package_defaults(self, make_props):
        props = make_props()
        assert props.listen_port() == 30303
        assert props.network_id() == 1
        assert props.database_dir() == "database"
        assert props.peer_active() == []
        assert props.is_sync_enabled() is True

    def test_api_config_overrides_resources(self, make_props, write_resource):
        write_resource("user.toml", "[peer]\nlisten.port = 30310\nnetworkId = 2\n")
        props = make_props({"peer": {"listen": {"port": 30320}}})
        assert props.listen_port() == 30320
        assert props.network_id() == 2

    def test_test_resources_override_user(self, make_props, write_resource):
        write_resource("user.toml", "[peer]\nlisten.port = 30310\n")
        write_resource("test-chainconf.toml", "[peer]\nlisten.port = 30311\n")
        write_resource("test-user.toml", "[peer]\nmaxActivePeers = 5\n")
        props = make_props()
        assert props.listen_port() == 30311
        assert props.max_active_peers() == 5

    def test_environment_overrides_api_config(self, make_props):
        props = make_props(
            {"peer.listen.port": 30320},
            environ={"CHAINCONF__peer__listen__port": "30330"},
        )
        assert props.listen_port() == 30330
        assert props.config.origin("peer.listen.port") == "process environment"

    def test_conf_file_from_environment(self, make_props, tmp_path):
        conf = tmp_path / "node.toml"
        conf.write_text("[hello]\nphrase = 'from file'\n", encoding="utf-8")
        props = make_props(environ={"CHAINCONF_CONF_FILE": str(conf)})
        assert props.hello_phrase() == "from file"

    def test_from_file(self, tmp_path, make_loader):
        conf = tmp_path / "api.toml"
        conf.write_text("[peer]\nnetworkId = 7\n", encoding="utf-8")
        props = SystemProperties.from_file(conf, loader=make_loader(), ip_resolver=FakeIpResolver())
        assert props.network_id() == 7

    def test_from_resource(self, write_resource, make_loader):
        write_resource("node-a.toml", "[peer]\nnetworkId = 9\n")
        props = SystemProperties.from_resource("node-a.toml", loader=make_loader(),
                                               ip_resolver=FakeIpResolver())
        assert props.network_id() == 9


# ============================================================================
# Validation
# ============================================================================

class TestValidation:

    def test_invalid_construction_lists_every_failure(self, make_props):
        with pytest.raises(MergeValidationError) as exc:
            make_props({"peer.listen.port": 0, "cache.flush.memory": 2.0})
        names = {e.check_name for e in exc.value.errors}
        assert names == {"peer.listen.port", "cache.flush.memory"}

    def test_type_error_is_a_validation_failure(self, make_props):
        with pytest.raises(MergeValidationError) as exc:
            make_props({"sync.enabled": "maybe"})
        assert [e.check_name for e in exc.value.errors] == ["sync.enabled"]

    def test_rejected_override_leaves_config_unchanged(self, make_props):
        props = make_props()
        layers_before = len(props.config.layers)
        with pytest.raises(MergeValidationError):
            props.override_params("peer.listen.port", "70000")
        assert props.listen_port() == 30303
        assert len(props.config.layers) == layers_before

    def test_accepted_override_adds_one_layer(self, make_props):
        props = make_props()
        layers_before = len(props.config.layers)
        props.override_params("peer.listen.port", "30304")
        assert props.listen_port() == 30304
        assert len(props.config.layers) == layers_before + 1

    def test_missing_required_key(self, make_props, write_resource):
        # Shadow the package defaults with an incomplete file
        write_resource("chainconf.toml", "[peer]\nlisten.port = 30303\n")
        with pytest.raises(MergeValidationError) as exc:
            make_props()
        assert "database.dir" in {e.check_name for e in exc.value.errors}

    def test_ip_detection_is_not_validated(self, make_props):
        resolver = FakeIpResolver()
        make_props(ip_resolver=resolver)
        assert resolver.bind_calls == 0
        assert resolver.external_calls == 0


# ============================================================================
# Overrides
# ============================================================================

class TestOverrides:

    def test_positional_pairs(self, make_props):
        props = make_props()
        props.override_params("peer.listen.port", "30305", "peer.networkId", "3")
        assert props.listen_port() == 30305
        assert props.network_id() == 3

    def test_pair_list(self, make_props):
        props = make_props()
        props.override_params(["peer.maxActivePeers", "12"])
        assert props.max_active_peers() == 12

    def test_mapping(self, make_props):
        props = make_props()
        props.override_params({"peer": {"discovery": {"workers": 2}}})
        assert props.peer_discovery_workers() == 2

    def test_config_source(self, make_props):
        props = make_props()
        props.override_params(ConfigSource({"hello.phrase": "Hi"}, "custom"))
        assert props.hello_phrase() == "Hi"
        assert props.config.origin("hello.phrase") == "custom"

    def test_odd_pairs(self, make_props):
        props = make_props()
        with pytest.raises(ValueError):
            props.override_params("peer.listen.port", "30305", "peer.networkId")

    def test_override_beats_environment(self, make_props):
        props = make_props(environ={"CHAINCONF__peer__networkId": "5"})
        assert props.network_id() == 5
        props.override_params("peer.networkId", "6")
        assert props.network_id() == 6

    def test_setters(self, make_props, tmp_path):
        props = make_props()
        props.set_database_dir(str(tmp_path / "db"))
        props.set_database_reset(True)
        props.set_sync_enabled(False)
        props.set_discovery_enabled(False)
        assert props.database_dir() == str(tmp_path / "db")
        assert props.database_reset() is True
        assert props.is_sync_enabled() is False
        assert props.peer_discovery() is False

    def test_dump(self, make_props):
        props = make_props()
        props.override_params("hello.phrase", "dumped")
        dumped = json.loads(props.dump())
        assert dumped["hello.phrase"] == "dumped"
        assert dumped["peer.listen.port"] == 30303


# ============================================================================
# IP autodetection
# ============================================================================

class TestIpAddresses:

    def test_configured_addresses_skip_probing(self, make_props):
        resolver = FakeIpResolver()
        props = make_props({"peer.discovery.bind.ip": " 10.0.0.5 ", "peer.discovery.external.ip": "1.2.3.4"},
                           ip_resolver=resolver)
        assert props.bind_ip() == "10.0.0.5"
        assert props.external_ip() == "1.2.3.4"
        assert resolver.bind_calls == 0
        assert resolver.external_calls == 0

    def test_probed_once(self, make_props):
        resolver = FakeIpResolver()
        props = make_props(ip_resolver=resolver)
        assert props.bind_ip() == "192.168.1.10"
        assert props.bind_ip() == "192.168.1.10"
        assert props.external_ip() == "203.0.113.7"
        assert props.external_ip() == "203.0.113.7"
        assert resolver.bind_calls == 1
        assert resolver.external_calls == 1

    def test_bind_fallback(self, make_props):
        props = make_props(ip_resolver=FakeIpResolver(bind=None))
        assert props.bind_ip() == "0.0.0.0"

    def test_external_falls_back_to_bind(self, make_props):
        props = make_props(ip_resolver=FakeIpResolver(external=None))
        assert props.external_ip() == "192.168.1.10"

    def test_both_fail(self, make_props):
        props = make_props(ip_resolver=FakeIpResolver(bind=None, external=None))
        assert props.external_ip() == "0.0.0.0"


# ============================================================================
# Genesis / version
# ============================================================================

class TestGenesis:

    def test_no_loader(self, make_props):
        with pytest.raises(ConfigError, match="frontier.json"):
            make_props().get_genesis()

    def test_memoized_and_reset(self, make_props):
        calls = []

        def loader(props):
            calls.append(props.genesis_info())
            return {"resource": props.genesis_info()}

        props = make_props(genesis_loader=loader)
        assert props.get_genesis() == {"resource": "frontier.json"}
        assert props.get_genesis() is props.get_genesis()
        assert calls == ["frontier.json"]

        props.set_genesis_info("custom.json")
        assert props.get_genesis() == {"resource": "custom.json"}
        assert calls == ["frontier.json", "custom.json"]


class TestVersion:

    def test_modifier_matches_version(self, make_props):
        props = make_props()
        version = props.project_version()
        modifier = props.project_version_modifier()
        assert modifier in ("SNAPSHOT", "RELEASE")
        if version == "-.-.-":
            assert modifier == "SNAPSHOT"
