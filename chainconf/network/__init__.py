"""
chainconf Network Configuration

Fork schedules per network and their selection from config.
"""

from .config import (
    ForkConfig,
    NetworkConfig,
    BaseNetworkConfig,
    MainNetConfig,
    MordenNetConfig,
    TestNetConfig,
    OlympicConfig,
)
from .selector import (
    BUILTIN_NETWORKS,
    NetworkConfigSelector,
    network_selection,
    resolve_network_config,
    load_network_config,
    register_network_config,
    unregister_network_config,
)

__all__ = [
    "ForkConfig",
    "NetworkConfig",
    "BaseNetworkConfig",
    "MainNetConfig",
    "MordenNetConfig",
    "TestNetConfig",
    "OlympicConfig",
    "BUILTIN_NETWORKS",
    "NetworkConfigSelector",
    "network_selection",
    "resolve_network_config",
    "load_network_config",
    "register_network_config",
    "unregister_network_config",
]
