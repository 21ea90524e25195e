"""
chainconf Network Configurations

A network configuration is a fork schedule: which set of protocol rules
applies from which block on. The built-in networks are ``main``,
``olympic``, ``morden`` and ``testnet``.
"""

import bisect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class ForkConfig:
    """Protocol rules active from a given block on."""

    name: str
    homestead: bool = False
    eip150: bool = False
    eip155: bool = False
    chain_id: int = 1


FRONTIER = ForkConfig("Frontier")
HOMESTEAD = ForkConfig("Homestead", homestead=True)
DAO_HARD_FORK = ForkConfig("DaoHardFork", homestead=True)
EIP150 = ForkConfig("Eip150", homestead=True, eip150=True)
EIP160 = ForkConfig("Eip160", homestead=True, eip150=True, eip155=True, chain_id=1)
OLYMPIC = ForkConfig("Olympic")


class NetworkConfig(ABC):
    """Capability every network configuration provides."""

    name: str = ""

    @abstractmethod
    def get_config_for_block(self, block_number: int) -> ForkConfig:
        """Fork rules in effect at *block_number*."""

    @abstractmethod
    def schedule(self) -> List[Tuple[int, ForkConfig]]:
        """``(first block, fork)`` pairs in ascending block order."""


class BaseNetworkConfig(NetworkConfig):
    """Network configuration backed by an explicit fork schedule."""

    def __init__(self) -> None:
        self._blocks: List[int] = []
        self._forks: List[ForkConfig] = []

    def add(self, start_block: int, fork: ForkConfig) -> None:
        if self._blocks and start_block <= self._blocks[-1]:
            raise ValueError(
                f"Forks must be added in ascending block order: {start_block} after {self._blocks[-1]}"
            )
        self._blocks.append(start_block)
        self._forks.append(fork)

    def get_config_for_block(self, block_number: int) -> ForkConfig:
        if block_number < 0:
            raise ValueError(f"Block number can't be negative: {block_number}")
        index = bisect.bisect_right(self._blocks, block_number) - 1
        if index < 0:
            raise ValueError(f"No fork configured for block {block_number} in '{self.name}'")
        return self._forks[index]

    def schedule(self) -> List[Tuple[int, ForkConfig]]:
        return list(zip(self._blocks, self._forks))

    def __repr__(self) -> str:
        forks = ", ".join(f"{fork.name}@{block}" for block, fork in self.schedule())
        return f"{type(self).__name__}({forks})"


class MainNetConfig(BaseNetworkConfig):
    name = "main"

    def __init__(self) -> None:
        super().__init__()
        self.add(0, FRONTIER)
        self.add(1_150_000, HOMESTEAD)
        self.add(1_920_000, DAO_HARD_FORK)
        self.add(2_463_000, EIP150)
        self.add(2_675_000, EIP160)


class MordenNetConfig(BaseNetworkConfig):
    name = "morden"

    def __init__(self) -> None:
        super().__init__()
        self.add(0, FRONTIER)
        self.add(494_000, HOMESTEAD)


class TestNetConfig(BaseNetworkConfig):
    """Private test network running Homestead rules from genesis."""

    name = "testnet"
    __test__ = False  # not a pytest class

    def __init__(self) -> None:
        super().__init__()
        self.add(0, HOMESTEAD)


class OlympicConfig(BaseNetworkConfig):
    name = "olympic"

    def __init__(self) -> None:
        super().__init__()
        self.add(0, OLYMPIC)
