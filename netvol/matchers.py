"""Strategies for turning one command-line device specifier into devices.

This matches entirely too many things:

- plain network device names
- 'me', the device(s) carrying the IP address(es) of our hostname
- symbolic site names and groups of them (see netvol.netnames)
- globbed network device names, eg 'enp*f*'
- IP addresses, which must exactly match an address of some device
- CIDR netblocks, matched against device addresses
- wildcarded IP address patterns, eg '127.*'

Every matcher has the same shape: match(token, info) returns whether it
matched anything and the set of devices it matched. Matchers never raise
on junk input; it just doesn't match.
"""

from __future__ import annotations

import ipaddress
import socket
from fnmatch import fnmatchcase
from typing import Callable, Iterable

from netvol.devset import DevSet
from netvol.netinfo import NetInfo, canonical_ip
from netvol.netnames import SiteTable, default_table

REGISTRY: dict[str, type[Matcher]] = {}

# Order matters: the first matcher to hit wins. Cheap and unambiguous
# first; the magic names go before globbing so a glob can't shadow them.
CASCADE = ("name", "me", "netname", "glob", "ip", "cidr", "ipglob")


def register(cls: type[Matcher]) -> type[Matcher]:
    """Decorator that adds a matcher class to the registry."""
    REGISTRY[cls.name] = cls
    return cls


class Matcher:
    name: str = ""

    def match(self, token: str, info: NetInfo) -> tuple[bool, DevSet]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


def _devices_for_ips(ips: Iterable[str], info: NetInfo) -> DevSet:
    found = DevSet()
    for ip in ips:
        found.add_all(info.ip_map.get(ip, ()))
    return found


def cidr_devices(cidr: str, info: NetInfo) -> DevSet:
    """Devices with any address inside the netblock. Empty if cidr is junk."""
    try:
        net = ipaddress.ip_network(cidr, strict=False)
    except ValueError:
        return DevSet()
    found = DevSet()
    for ip, devs in info.ip_map.items():
        try:
            addr = ipaddress.ip_address(ip)
        except ValueError:
            continue
        if addr in net:
            found.add_all(devs)
    return found


@register
class NameMatcher(Matcher):
    name = "name"

    def match(self, token, info):
        if token in info.interfaces:
            return True, DevSet([token])
        return False, DevSet()


def lookup_hostname() -> list[str]:
    """IP addresses for our own hostname, per the system resolver."""
    hn = socket.gethostname()
    return [ai[4][0] for ai in socket.getaddrinfo(hn, None)]


@register
class MeMatcher(Matcher):
    """'me': whatever devices carry our hostname's IP address(es).

    We don't try to pick a primary address; every local hit counts.
    """

    name = "me"

    def __init__(self, lookup: Callable[[], list[str]] = lookup_hostname):
        self._lookup = lookup

    def match(self, token, info):
        if token != "me":
            return False, DevSet()
        try:
            addrs = self._lookup()
        except OSError:
            return False, DevSet()
        ips = [ip for ip in (canonical_ip(a) for a in addrs) if ip is not None]
        found = _devices_for_ips(ips, info)
        return bool(found), found


@register
class NetNameMatcher(Matcher):
    """Symbolic site names and groups.

    A group matches if any one of its netblocks matches, so 'inside' can
    mean 'lan and/or dmz'.
    """

    name = "netname"

    def __init__(self, table: SiteTable | None = None):
        self.table = table if table is not None else default_table()

    def match(self, token, info):
        cidrs = self.table.cidrs_for(token)
        if not cidrs:
            return False, DevSet()
        found = DevSet()
        for cidr in cidrs:
            found.add_all(cidr_devices(cidr, info))
        return bool(found), found


@register
class GlobMatcher(Matcher):
    name = "glob"

    def match(self, token, info):
        found = DevSet(dev for dev in info.interfaces if fnmatchcase(dev, token))
        return bool(found), found


@register
class IPMatcher(Matcher):
    """An exact IP address, eg '127.0.0.1' -> lo.

    Only one address can match, but it may be on several devices.
    """

    name = "ip"

    def match(self, token, info):
        try:
            ip = str(ipaddress.ip_address(token))
        except ValueError:
            return False, DevSet()
        if ip in info.ip_map:
            return True, DevSet(info.ip_map[ip])
        return False, DevSet()


@register
class CIDRMatcher(Matcher):
    """A netblock, eg '127.0.0.0/8' -> lo."""

    name = "cidr"

    def match(self, token, info):
        if "/" not in token:
            return False, DevSet()
        found = cidr_devices(token, info)
        return bool(found), found


@register
class IPGlobMatcher(Matcher):
    """A wildcarded address, eg '127.*' -> lo."""

    name = "ipglob"

    def match(self, token, info):
        found = DevSet()
        for ip, devs in info.ip_map.items():
            if fnmatchcase(ip, token):
                found.add_all(devs)
        return bool(found), found


def default_cascade(table: SiteTable | None = None,
                    lookup: Callable[[], list[str]] | None = None) -> tuple[Matcher, ...]:
    """Instantiate the matchers in CASCADE order."""
    out = []
    for name in CASCADE:
        cls = REGISTRY[name]
        if cls is NetNameMatcher:
            out.append(cls(table))
        elif cls is MeMatcher and lookup is not None:
            out.append(cls(lookup))
        else:
            out.append(cls())
    return tuple(out)
