"""
chainconf IP Autodetection

Finds the local bind address and the public address of this node when the
config leaves them blank. Both probes block on the network with the
transport's default timeouts.
"""

import ipaddress
import socket
from typing import Optional, Protocol, Tuple

import httpx

from ..constants import BIND_IP_PROBE_HOST, EXTERNAL_IP_SERVICE
from ..exceptions import IpResolutionError


class IpResolver(Protocol):
    """Collaborator resolving this node's addresses; raises IpResolutionError on failure."""

    def bind_ip(self) -> str:
        ...

    def external_ip(self) -> str:
        ...


class NetworkIpResolver:
    """
    Resolves addresses by talking to the outside world:
    - bind IP: local address of a TCP connection to a well-known host
    - external IP: body of a "what is my IP" HTTP service
    """

    def __init__(
        self,
        probe_host: Tuple[str, int] = BIND_IP_PROBE_HOST,
        external_service: str = EXTERNAL_IP_SERVICE,
        timeout: Optional[float] = None,
    ):
        self.probe_host = probe_host
        self.external_service = external_service
        self.timeout = timeout

    def bind_ip(self) -> str:
        try:
            with socket.create_connection(self.probe_host, timeout=self.timeout) as s:
                return s.getsockname()[0]
        except OSError as e:
            raise IpResolutionError(f"Can't connect to {self.probe_host[0]}:{self.probe_host[1]}: {e}") from e

    def external_ip(self) -> str:
        try:
            kwargs = {} if self.timeout is None else {"timeout": self.timeout}
            response = httpx.get(self.external_service, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise IpResolutionError(f"Can't query {self.external_service}: {e}") from e

        lines = response.text.splitlines()
        address = lines[0].strip() if lines else ""
        try:
            ipaddress.ip_address(address)
        except ValueError:
            raise IpResolutionError(f"Invalid address: '{address}'") from None
        return address
