"""Symbolic site names for network blocks.

A site name maps to exactly one CIDR netblock; a group name maps to a list
of site names and matches any device in any of their netblocks. The table
below is the built-in default; a YAML file of the same shape can replace
it::

    names:
      lan: 192.168.1.0/24
      dmz: 192.168.66.0/24
    groups:
      inside: [lan, dmz]
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

from netvol.errors import ConfigError

logger = logging.getLogger(__name__)

# name -> CIDR
SITE_NAMES: dict[str, str] = {
    "lan": "192.168.1.0/24",
    "dmz": "192.168.66.0/24",
    "lab": "192.168.151.0/24",

    "iscsi1": "192.168.101.0/24",
    "iscsi2": "192.168.102.0/24",

    "docker": "172.17.0.0/16",
    "vpn": "172.29.0.0/16",
    "wifi": "172.31.0.0/16",
}

# group -> site names, which must be in SITE_NAMES. No nested groups, no raw CIDRs.
SITE_GROUPS: dict[str, list[str]] = {
    "iscsi": ["iscsi1", "iscsi2"],
    "inside": ["lan", "dmz"],
}


@dataclass(frozen=True)
class SiteTable:
    names: Mapping[str, str] = field(default_factory=dict)
    groups: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        clash = sorted(set(self.names) & set(self.groups))
        if clash:
            raise ConfigError(f"names defined both as site and group: {', '.join(clash)}")
        object.__setattr__(self, "names", MappingProxyType(dict(self.names)))
        object.__setattr__(self, "groups", MappingProxyType(
            {k: tuple(v) for k, v in self.groups.items()}))

    def __contains__(self, name: object) -> bool:
        return name in self.names or name in self.groups

    def cidrs_for(self, name: str) -> list[str] | None:
        """Return the netblocks a name stands for.

        None if the name is unknown, or if it is a group with a member
        missing from the site names (the whole group then matches nothing).
        """
        if name in self.names:
            return [self.names[name]]
        members = self.groups.get(name)
        if members is None:
            return None
        missing = [m for m in members if m not in self.names]
        if missing:
            logger.debug("group %s refers to unknown site names %s; ignoring it", name, missing)
            return None
        return [self.names[m] for m in members]


def default_table() -> SiteTable:
    return SiteTable(names=SITE_NAMES, groups=SITE_GROUPS)


def load_netnames(path: str | Path) -> SiteTable:
    """Load a site table from a YAML file."""
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read site names file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse site names file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping with 'names' and 'groups'")

    names = data.get("names") or {}
    groups = data.get("groups") or {}
    if not isinstance(names, dict) or not isinstance(groups, dict):
        raise ConfigError(f"{path}: 'names' and 'groups' must be mappings")

    for name, cidr in names.items():
        try:
            ipaddress.ip_network(str(cidr), strict=False)
        except ValueError as e:
            raise ConfigError(f"{path}: site name {name!r}: {e}") from e
    for name, members in groups.items():
        if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
            raise ConfigError(f"{path}: group {name!r} must be a list of site names")

    return SiteTable(
        names={str(k): str(v) for k, v in names.items()},
        groups={str(k): list(v) for k, v in groups.items()},
    )
