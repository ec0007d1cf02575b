"""IPv4/IPv6 socket addresses."""

from __future__ import annotations

import socket
from typing import Optional, Union

SockAddr = Union[tuple[str, int], tuple[str, int, int, int]]


class InetAddress:
    """An IP address and port, IPv4 or IPv6."""

    def __init__(
        self,
        ip: Optional[str] = None,
        port: int = 0,
        ipv6: bool = False,
        loopback_only: bool = False,
    ) -> None:
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")
        self._port = port
        self._flowinfo = 0
        self._scope_id = 0
        if ip is None:
            if ipv6:
                self._family = socket.AF_INET6
                self._packed = socket.inet_pton(
                    socket.AF_INET6, "::1" if loopback_only else "::"
                )
            else:
                self._family = socket.AF_INET
                self._packed = socket.inet_pton(
                    socket.AF_INET, "127.0.0.1" if loopback_only else "0.0.0.0"
                )
            return
        self._family = socket.AF_INET6 if ipv6 or ":" in ip else socket.AF_INET
        try:
            self._packed = socket.inet_pton(self._family, ip)
        except OSError as exc:
            raise ValueError(f"invalid IP address: {ip!r}") from exc

    @classmethod
    def from_sockaddr(cls, family: int, addr: SockAddr) -> "InetAddress":
        """Build an address from a socket module address tuple."""
        if family == socket.AF_INET6:
            result = cls(addr[0].split("%", 1)[0], addr[1], ipv6=True)
            if len(addr) == 4:
                result._flowinfo = addr[2]
                result._scope_id = addr[3]
            return result
        if family == socket.AF_INET:
            return cls(addr[0], addr[1])
        raise ValueError(f"unsupported address family: {family}")

    def ip(self) -> str:
        return socket.inet_ntop(self._family, self._packed)

    def port(self) -> int:
        return self._port

    def family(self) -> int:
        return self._family

    def to_ip_port(self) -> str:
        return f"{self.ip()}:{self._port}"

    def sockaddr(self) -> SockAddr:
        """Return the tuple that ``socket.bind`` or ``connect`` accepts."""
        if self._family == socket.AF_INET6:
            return (self.ip(), self._port, self._flowinfo, self._scope_id)
        return (self.ip(), self._port)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InetAddress):
            return NotImplemented
        return (self._family, self._packed, self._port) == (
            other._family,
            other._packed,
            other._port,
        )

    def __hash__(self) -> int:
        return hash((self._family, self._packed, self._port))

    def __repr__(self) -> str:
        return f"InetAddress({self.to_ip_port()!r})"

    def __str__(self) -> str:
        return self.to_ip_port()


def local_address(sock: socket.socket) -> InetAddress:
    """Return the address a socket is bound to."""
    return InetAddress.from_sockaddr(sock.family, sock.getsockname())


def peer_address(sock: socket.socket) -> InetAddress:
    """Return the address of a connected socket's peer."""
    return InetAddress.from_sockaddr(sock.family, sock.getpeername())