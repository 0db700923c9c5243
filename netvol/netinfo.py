"""Interface directory: which devices exist, their kind, and their IPs.

Built once at startup and never modified afterwards. We assume loopback
and point-to-point devices don't come and go while we run, which is not
strictly true (especially for PtP devices) but is the best we can do.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

import psutil

from netvol.errors import AcquisitionError

logger = logging.getLogger(__name__)

_IP_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def canonical_ip(text: str) -> str | None:
    """Normalize an address string, dropping any IPv6 '%scope' suffix.

    Returns None if text is not an IP address.
    """
    try:
        return str(ipaddress.ip_address(text.split("%", 1)[0]))
    except ValueError:
        return None


@dataclass(frozen=True)
class NetInfo:
    interfaces: tuple[str, ...] = ()
    loopback: frozenset[str] = frozenset()
    point_to_point: frozenset[str] = frozenset()
    # an IP can be on more than one device (aliases, VRRP, ...)
    ip_map: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "interfaces", tuple(sorted(set(self.interfaces))))
        object.__setattr__(self, "loopback", frozenset(self.loopback))
        object.__setattr__(self, "point_to_point", frozenset(self.point_to_point))
        object.__setattr__(self, "ip_map", MappingProxyType(
            {ip: tuple(devs) for ip, devs in self.ip_map.items()}))

        known = set(self.interfaces)
        strays = set(self.loopback) | set(self.point_to_point)
        for devs in self.ip_map.values():
            strays.update(devs)
        strays -= known
        if strays:
            raise ValueError(f"unknown interfaces referenced: {', '.join(sorted(strays))}")

    @classmethod
    def build(cls, interfaces: Iterable[str], *,
              loopback: Iterable[str] = (),
              point_to_point: Iterable[str] = (),
              addrs: Iterable[tuple[str, str]] = ()) -> NetInfo:
        """Build a directory from (device, address) pairs."""
        ip_map: dict[str, list[str]] = {}
        for dev, addr in addrs:
            ip = canonical_ip(addr)
            if ip is None:
                continue
            devs = ip_map.setdefault(ip, [])
            if dev not in devs:
                devs.append(dev)
        return cls(
            interfaces=tuple(interfaces),
            loopback=frozenset(loopback),
            point_to_point=frozenset(point_to_point),
            ip_map={ip: tuple(sorted(devs)) for ip, devs in ip_map.items()},
        )

    def is_loopback(self, name: str) -> bool:
        return name in self.loopback

    def is_point_to_point(self, name: str) -> bool:
        return name in self.point_to_point

    def addresses_by_device(self, ipv6: bool = True) -> dict[str, list[str]]:
        """Invert ip_map: device -> sorted list of its addresses."""
        out: dict[str, list[str]] = {}
        for ip, devs in self.ip_map.items():
            if not ipv6 and ":" in ip:
                continue
            for dev in devs:
                out.setdefault(dev, []).append(ip)
        return {dev: sorted(ips) for dev, ips in sorted(out.items())}


def discover() -> NetInfo:
    """Enumerate local interfaces, their flags and addresses with psutil."""
    try:
        if_stats = psutil.net_if_stats()
        if_addrs = psutil.net_if_addrs()
    except (OSError, RuntimeError) as e:
        raise AcquisitionError(f"error on network info setup: {e}") from e

    loopback, ptp = [], []
    for name, st in if_stats.items():
        flags = set(st.flags.split(",")) if st.flags else set()
        if "loopback" in flags:
            loopback.append(name)
        if "pointopoint" in flags:
            ptp.append(name)

    addrs = [
        (name, a.address)
        for name, alist in if_addrs.items()
        for a in alist
        if a.family in _IP_FAMILIES
    ]
    info = NetInfo.build(set(if_stats) | set(if_addrs),
                         loopback=loopback, point_to_point=ptp, addrs=addrs)
    logger.debug("found %d interfaces, %d addresses", len(info.interfaces), len(info.ip_map))
    return info
