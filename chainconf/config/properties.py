"""
chainconf System Properties

:class:`SystemProperties` is the one configuration object a node builds at
startup and hands to everything that needs settings. It owns the merged
source stack, validates it, accepts later overrides, and memoizes the
derived values (network config, node identity, detected IPs, genesis).

Overrides are pushed on top of the stack and can't be removed. Each push is
validated as a whole before it replaces the current configuration, so a
rejected override leaves the previous configuration in place.
"""

from __future__ import annotations

import threading
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from ..crypto.keys import PrivateKey
from ..exceptions import ConfigError, IpResolutionError
from ..logger import get_logger
from ..network.config import NetworkConfig
from ..network.selector import NetworkConfigSelector
from ..node.identity import NodeIdentity, NodeIdentityManager
from ..p2p.ip import IpResolver, NetworkIpResolver
from ..constants import BIND_IP_FALLBACK
from . import keys
from .accessors import ConfigAccessors
from .merged import MergedConfig
from .sources import ConfigSource, SourceLoader, parse_toml_file
from .validation import validate

logger = get_logger(__name__)

GenesisLoader = Callable[["SystemProperties"], Any]
Overrides = Union[ConfigSource, Mapping[str, Any], Sequence[str]]


class SystemProperties(ConfigAccessors):
    """
    Validated node configuration.

    Args:
        api_config: Config supplied by the embedding application; ranks above
            every file and resource but below process environment overrides.
        loader: Locates the file and resource layers.
        ip_resolver: Detects bind/external IP when they aren't configured.
        identity_manager: Resolves the node key.
        genesis_loader: Turns this config into a genesis object on first use.

    Raises:
        MergeValidationError: If the merged configuration fails validation
    """

    def __init__(
        self,
        api_config: Optional[Union[ConfigSource, Mapping[str, Any]]] = None,
        *,
        loader: Optional[SourceLoader] = None,
        ip_resolver: Optional[IpResolver] = None,
        identity_manager: Optional[NodeIdentityManager] = None,
        genesis_loader: Optional[GenesisLoader] = None,
    ):
        self._lock = threading.RLock()
        self._loader = loader or SourceLoader()
        self._ip_resolver: IpResolver = ip_resolver or NetworkIpResolver()
        self._identity = identity_manager or NodeIdentityManager()
        self._genesis_loader = genesis_loader
        self._network = NetworkConfigSelector()

        self._bind_ip: Optional[str] = None
        self._external_ip: Optional[str] = None
        self._genesis: Any = None

        if api_config is not None and not isinstance(api_config, ConfigSource):
            api_config = ConfigSource(api_config, "API")

        merged = MergedConfig(self._loader.initial_sources(api_config))
        logger.debug("Config trace: %s", merged.render())

        environment = self._loader.load_environment()
        logger.info("Config (%s): process environment overrides",
                    " no  " if environment.is_empty else " yes ")
        merged = merged.push(environment)

        validate(merged)
        super().__init__(merged)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> "SystemProperties":
        """Use a TOML file as the API config layer."""
        return cls(parse_toml_file(Path(path)), **kwargs)

    @classmethod
    def from_resource(cls, name: str, **kwargs) -> "SystemProperties":
        """Use a named resource as the API config layer."""
        loader = kwargs.get("loader") or SourceLoader()
        kwargs["loader"] = loader
        return cls(loader.load_resource(name), **kwargs)

    # --- overrides --------------------------------------------------------

    def push(self, source: ConfigSource) -> None:
        """
        Put *source* atop the stack. Once put it can't be removed.

        Raises:
            MergeValidationError: If the result is invalid; nothing changes then
        """
        with self._lock:
            candidate = self._config.push(source)
            validate(candidate)
            self._config = candidate
        logger.info("Config ( yes ): override from %s (%d keys)", source.origin, len(source))

    def override_params(self, *overrides: Any) -> None:
        """
        Push overrides on top of the configuration.

        Accepts a single ConfigSource, a single mapping (dotted or nested
        keys), or key/value strings either as a sequence or as positional
        arguments: ``override_params("peer.listen.port", "30304")``.

        Raises:
            ValueError: On an odd number of key/value strings
            MergeValidationError: If the result is invalid
        """
        if len(overrides) == 1 and isinstance(overrides[0], ConfigSource):
            source = overrides[0]
        elif len(overrides) == 1 and isinstance(overrides[0], Mapping):
            source = ConfigSource(overrides[0], "override map")
        else:
            pairs = overrides
            if len(overrides) == 1 and isinstance(overrides[0], (list, tuple)):
                pairs = overrides[0]
            source = ConfigSource.from_pairs([str(p) for p in pairs], "override pairs")
        self.push(source)

    def set_database_dir(self, database_dir: str) -> None:
        self.override_params({keys.DATABASE_DIR: database_dir})

    def set_database_reset(self, reset: bool) -> None:
        self.override_params({keys.DATABASE_RESET: reset})

    def set_sync_enabled(self, enabled: bool) -> None:
        self.override_params({keys.SYNC_ENABLED: enabled})

    def set_discovery_enabled(self, enabled: bool) -> None:
        self.override_params({keys.PEER_DISCOVERY_ENABLED: enabled})

    def set_genesis_info(self, genesis_info: str) -> None:
        self.override_params({keys.GENESIS: genesis_info})
        with self._lock:
            self._genesis = None

    def dump(self) -> str:
        return self._config.render()

    # --- network config ---------------------------------------------------

    def get_blockchain_config(self) -> NetworkConfig:
        """
        Network config named by ``blockchain.config.name`` or ``.class``.

        Raises:
            ConfigError: If the selection is ambiguous or can't be loaded
        """
        return self._network.resolve(self._config)

    def set_blockchain_config(self, network_config: NetworkConfig) -> None:
        self._network.set(network_config)

    # --- identity ---------------------------------------------------------

    def node_identity(self) -> NodeIdentity:
        return self._identity.identity(self._config)

    def private_key(self) -> bytes:
        """
        32-byte node private key: ``peer.privateKey`` or the persisted generated key.

        Raises:
            InvalidKeyLength: If ``peer.privateKey`` isn't 32 bytes of hex
            InvalidKeyError: If ``peer.privateKey`` is outside the secp256k1 key range
        """
        return self._identity.private_key(self._config)

    def my_key(self) -> PrivateKey:
        return PrivateKey(self.private_key())

    def node_id(self) -> bytes:
        """Home node id derived from the node private key."""
        return self._identity.node_id(self._config)

    # --- addresses --------------------------------------------------------

    def bind_ip(self) -> str:
        """
        ``peer.discovery.bind.ip`` or, when blank, the probed local address.

        This can block on the network the first time it is called.
        """
        configured = self.get_property(keys.PEER_DISCOVERY_BIND_IP)
        if configured is not None:
            return str(configured).strip()
        with self._lock:
            if self._bind_ip is None:
                logger.info("Bind address wasn't set, Punching to identify it...")
                try:
                    self._bind_ip = self._ip_resolver.bind_ip()
                    logger.info("UDP local bound to: %s", self._bind_ip)
                except IpResolutionError as e:
                    logger.warning("Can't get bind IP. Fall back to %s: %s", BIND_IP_FALLBACK, e)
                    self._bind_ip = BIND_IP_FALLBACK
            return self._bind_ip

    def external_ip(self) -> str:
        """
        ``peer.discovery.external.ip`` or, when blank, the probed public
        address, falling back to :meth:`bind_ip`.

        This can block on the network the first time it is called.
        """
        configured = self.get_property(keys.PEER_DISCOVERY_EXTERNAL_IP)
        if configured is not None:
            return str(configured).strip()
        with self._lock:
            if self._external_ip is None:
                logger.info("External IP wasn't set, probing to identify it...")
                try:
                    self._external_ip = self._ip_resolver.external_ip()
                    logger.info("External address identified: %s", self._external_ip)
                except IpResolutionError as e:
                    self._external_ip = self.bind_ip()
                    logger.warning("Can't get external IP. Fall back to peer.bind.ip: %s: %s",
                                   self._external_ip, e)
            return self._external_ip

    # --- genesis / version ------------------------------------------------

    def get_genesis(self) -> Any:
        with self._lock:
            if self._genesis is None:
                if self._genesis_loader is None:
                    raise ConfigError("No genesis loader was given to load '%s'" % self.genesis_info())
                self._genesis = self._genesis_loader(self)
            return self._genesis

    def project_version(self) -> str:
        try:
            return version("chainconf")
        except PackageNotFoundError:
            return "-.-.-"

    def project_version_modifier(self) -> str:
        v = self.project_version()
        return "SNAPSHOT" if ("dev" in v or "+" in v or v == "-.-.-") else "RELEASE"
