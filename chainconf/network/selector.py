"""
chainconf Network Config Selection

``blockchain.config.name`` picks a built-in network; ``blockchain.config.class``
names an externally supplied :class:`NetworkConfig` instead. Setting both is
an error. Type references are looked up in the plugin registry first
(:func:`register_network_config`), then imported as ``package.module:Name``
or ``package.module.Name``.
"""

import importlib
import threading
from typing import Callable, Dict, Optional, Tuple

from ..config import keys
from ..config.merged import MergedConfig
from ..exceptions import ConfigError
from ..logger import get_logger
from .config import MainNetConfig, MordenNetConfig, NetworkConfig, OlympicConfig, TestNetConfig

logger = get_logger(__name__)

NetworkConfigFactory = Callable[[], NetworkConfig]

BUILTIN_NETWORKS: Dict[str, NetworkConfigFactory] = {
    "main": MainNetConfig,
    "olympic": OlympicConfig,
    "morden": MordenNetConfig,
    "testnet": TestNetConfig,
}

DEFAULT_NETWORK = "main"

_plugins: Dict[str, NetworkConfigFactory] = {}
_plugins_lock = threading.Lock()


def register_network_config(identifier: str, factory: NetworkConfigFactory) -> None:
    """Make *factory* selectable through ``blockchain.config.class = identifier``."""
    with _plugins_lock:
        _plugins[identifier] = factory


def unregister_network_config(identifier: str) -> None:
    with _plugins_lock:
        _plugins.pop(identifier, None)


def _configured(config: MergedConfig, key: str) -> Optional[str]:
    value = config.lookup(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def network_selection(config: MergedConfig) -> Tuple[str, str]:
    """
    Which network config is selected, as ``("name", value)`` or
    ``("class", value)``. Touches nothing but the config.

    Raises:
        ConfigError: If both keys are set or the name isn't built in
    """
    name = _configured(config, keys.BLOCKCHAIN_CONFIG_NAME)
    class_ref = _configured(config, keys.BLOCKCHAIN_CONFIG_CLASS)
    if name is not None and class_ref is not None:
        raise ConfigError(
            f"Only one of two options should be defined: "
            f"'{keys.BLOCKCHAIN_CONFIG_NAME}' and '{keys.BLOCKCHAIN_CONFIG_CLASS}'"
        )
    if class_ref is not None:
        return ("class", class_ref)
    name = name or DEFAULT_NETWORK
    if name not in BUILTIN_NETWORKS:
        raise ConfigError(f"Unknown value for '{keys.BLOCKCHAIN_CONFIG_NAME}': '{name}'")
    return ("name", name)


def _locate(class_ref: str) -> NetworkConfigFactory:
    with _plugins_lock:
        factory = _plugins.get(class_ref)
    if factory is not None:
        return factory

    if ":" in class_ref:
        module_name, _, attr = class_ref.partition(":")
    else:
        module_name, _, attr = class_ref.rpartition(".")
    if not module_name or not attr:
        raise ConfigError(
            f"The class specified via {keys.BLOCKCHAIN_CONFIG_CLASS} '{class_ref}' not found"
        )
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(
            f"The class specified via {keys.BLOCKCHAIN_CONFIG_CLASS} '{class_ref}' not found"
        ) from e


def load_network_config(class_ref: str) -> NetworkConfig:
    """
    Instantiate the network config named by *class_ref*.

    Raises:
        ConfigError: If it can't be located, instantiated, or isn't a NetworkConfig
    """
    factory = _locate(class_ref)
    try:
        instance = factory()
    except Exception as e:
        raise ConfigError(
            f"The class specified via {keys.BLOCKCHAIN_CONFIG_CLASS} '{class_ref}' couldn't be "
            f"instantiated (check for a no-argument constructor)"
        ) from e
    if not isinstance(instance, NetworkConfig):
        raise ConfigError(
            f"The class specified via {keys.BLOCKCHAIN_CONFIG_CLASS} '{class_ref}' is not an "
            f"instance of {NetworkConfig.__module__}.{NetworkConfig.__name__}"
        )
    return instance


def resolve_network_config(config: MergedConfig) -> NetworkConfig:
    kind, value = network_selection(config)
    if kind == "name":
        return BUILTIN_NETWORKS[value]()
    return load_network_config(value)


class NetworkConfigSelector:
    """Resolves the network config once and keeps it for the process lifetime."""

    def __init__(self) -> None:
        self._network_config: Optional[NetworkConfig] = None
        self._lock = threading.Lock()

    def resolve(self, config: MergedConfig) -> NetworkConfig:
        with self._lock:
            if self._network_config is None:
                self._network_config = resolve_network_config(config)
                logger.info("Network config resolved: %r", self._network_config)
            return self._network_config

    def set(self, network_config: NetworkConfig) -> None:
        """Inject a network config directly; configured name/class are ignored from now on."""
        with self._lock:
            self._network_config = network_config

    @property
    def resolved(self) -> bool:
        return self._network_config is not None
