"""
Shared fixtures: isolated source loaders and a scripted IP resolver so no
test reads the real environment, the working directory or the network.
"""

import pytest

from chainconf.config.sources import SourceLoader
from chainconf.exceptions import IpResolutionError


class FakeIpResolver:
    """IpResolver returning scripted answers; ``None`` means the probe fails."""

    def __init__(self, bind="192.168.1.10", external="203.0.113.7"):
        self._bind = bind
        self._external = external
        self.bind_calls = 0
        self.external_calls = 0

    def bind_ip(self):
        self.bind_calls += 1
        if self._bind is None:
            raise IpResolutionError("no route")
        return self._bind

    def external_ip(self):
        self.external_calls += 1
        if self._external is None:
            raise IpResolutionError("service unreachable")
        return self._external


@pytest.fixture
def resource_dir(tmp_path):
    """Resource directory searched before the package's own resources."""
    path = tmp_path / "resources"
    path.mkdir()
    return path


@pytest.fixture
def write_resource(resource_dir):
    def _write(name, text):
        path = resource_dir / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def make_loader(tmp_path, resource_dir):
    def _make(environ=None):
        return SourceLoader(
            resource_dirs=[resource_dir],
            cwd=tmp_path,
            environ={} if environ is None else environ,
            dotenv_path=None,
        )
    return _make


@pytest.fixture
def make_props(make_loader):
    """Build SystemProperties over the isolated loader."""
    from chainconf.config.properties import SystemProperties

    def _make(api_config=None, environ=None, **kwargs):
        kwargs.setdefault("loader", make_loader(environ))
        kwargs.setdefault("ip_resolver", FakeIpResolver())
        return SystemProperties(api_config, **kwargs)
    return _make


@pytest.fixture
def fake_resolver():
    return FakeIpResolver()
