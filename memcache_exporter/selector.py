"""Selection of the memcached server responsible for a key."""

from __future__ import annotations

import socket
import threading
import zlib
from dataclasses import dataclass
from typing import Callable, Iterable

from memcache_exporter.protocol import MemcacheError

_KEY_HASH_LIMIT = 256


class NoServers(MemcacheError):
    """No servers are configured or available."""

    def __init__(self, message: str = "memcache: no servers configured or available") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class ServerAddress:
    """A resolved server address: its network ("tcp" or "unix") and address string."""

    network: str
    address: str

    def __str__(self) -> str:
        return self.address


def _split_host_port(server: str) -> tuple[str, str]:
    if server.startswith("["):
        end = server.find("]")
        if end < 0:
            raise ValueError(f"address {server}: missing ']' in address")
        rest = server[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"address {server}: missing port in address")
        return server[1:end], rest[1:]
    host, sep, port = server.rpartition(":")
    if not sep:
        raise ValueError(f"address {server}: missing port in address")
    if ":" in host:
        raise ValueError(f"address {server}: too many colons in address")
    return host, port


def _port_number(port: str) -> int:
    if not port:
        return 0
    if port.isdigit():
        number = int(port)
        if number > 65535:
            raise ValueError(f"invalid port {port!r}")
        return number
    return socket.getservbyname(port, "tcp")


def _resolve(server: str) -> ServerAddress:
    if "/" in server:
        return ServerAddress("unix", server)
    host, port = _split_host_port(server)
    if not host:
        return ServerAddress("tcp", f":{_port_number(port)}")
    infos = socket.getaddrinfo(
        host, _port_number(port), type=socket.SOCK_STREAM, proto=socket.IPPROTO_TCP
    )
    if not infos:
        raise OSError(f"no addresses found for {host!r}")
    ipv4 = [info for info in infos if info[0] == socket.AF_INET]
    family, _, _, _, sockaddr = (ipv4 or infos)[0]
    ip, port_number = sockaddr[0], sockaddr[1]
    if family == socket.AF_INET6:
        return ServerAddress("tcp", f"[{ip}]:{port_number}")
    return ServerAddress("tcp", f"{ip}:{port_number}")


class ServerList:
    """Spreads keys over a list of servers by CRC32 of the key.

    A server listed several times receives a proportional share of keys.
    """

    def __init__(self, servers: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._addrs: list[ServerAddress] = []
        servers = list(servers)
        if servers:
            self.set_servers(*servers)

    def set_servers(self, *servers: str) -> None:
        """Replace the server list; nothing changes if any name fails to resolve."""
        resolved = [_resolve(server) for server in servers]
        with self._lock:
            self._addrs = resolved

    @property
    def addresses(self) -> list[ServerAddress]:
        with self._lock:
            return list(self._addrs)

    def each(self, fn: Callable[[ServerAddress], object]) -> None:
        """Call fn for every server in order; the first exception stops the walk."""
        for addr in self.addresses:
            fn(addr)

    def pick_server(self, key: str | bytes) -> ServerAddress:
        """Return the server that the given key belongs to."""
        addrs = self.addresses
        if not addrs:
            raise NoServers()
        if len(addrs) == 1:
            return addrs[0]
        data = key.encode("utf-8") if isinstance(key, str) else bytes(key)
        checksum = zlib.crc32(data[:_KEY_HASH_LIMIT])
        return addrs[checksum % len(addrs)]