"""
chainconf Tests: CLI

Runs the click commands in an empty working directory with no
CHAINCONF environment variables, so only the packaged defaults apply.
"""

import os
import re

import pytest
from click.testing import CliRunner

from chainconf.cli import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("CHAINCONF"):
            monkeypatch.delenv(name)
    return CliRunner()


class TestCli:

    def test_dump(self, runner):
        result = runner.invoke(cli, ["dump"])
        assert result.exit_code == 0, result.output
        assert '"peer.listen.port": 30303' in result.output

    def test_get(self, runner):
        result = runner.invoke(cli, ["get", "peer.listen.port"])
        assert result.exit_code == 0, result.output
        assert "30303" in result.output

    def test_get_missing(self, runner):
        result = runner.invoke(cli, ["get", "no.such.key"])
        assert result.exit_code != 0
        assert "No configuration setting found" in result.output

    def test_set(self, runner):
        result = runner.invoke(cli, ["--set", "peer.listen.port=30304", "get", "peer.listen.port"])
        assert result.exit_code == 0, result.output
        assert "30304" in result.output

    def test_set_malformed(self, runner):
        result = runner.invoke(cli, ["--set", "peer.listen.port", "dump"])
        assert result.exit_code == 2

    def test_set_invalid_value(self, runner):
        result = runner.invoke(cli, ["--set", "peer.listen.port=0", "dump"])
        assert result.exit_code == 1
        assert "peer.listen.port" in result.output

    def test_config_file(self, runner, tmp_path):
        conf = tmp_path / "api.toml"
        conf.write_text("[peer]\nlisten.port = 40404\n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(conf), "get", "peer.listen.port"])
        assert result.exit_code == 0, result.output
        assert "40404" in result.output

    def test_node_id(self, runner, tmp_path):
        result = runner.invoke(cli, ["--set", f"database.dir={tmp_path / 'db'}", "node-id"])
        assert result.exit_code == 0, result.output
        assert re.search(r"\b[0-9a-f]{128}\b", result.output)
        assert (tmp_path / "db" / "nodeId.properties").is_file()

    def test_peers(self, runner):
        result = runner.invoke(cli, ["peers"])
        assert result.exit_code == 0, result.output
        assert "No active peers configured" in result.output
        assert "Trusted peer patterns: 0" in result.output

    def test_network(self, runner):
        result = runner.invoke(cli, ["network", "--block", "1150000"])
        assert result.exit_code == 0, result.output
        assert "Network: main" in result.output
        assert "Block 1150000: Homestead" in result.output

    def test_ips_configured(self, runner):
        result = runner.invoke(cli, [
            "--set", "peer.discovery.bind.ip=10.0.0.2",
            "--set", "peer.discovery.external.ip=198.51.100.4",
            "ips",
        ])
        assert result.exit_code == 0, result.output
        assert "bind:     10.0.0.2" in result.output
        assert "external: 198.51.100.4" in result.output
