"""Expand command-line device specifiers into a list of device names."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from netvol.devset import DevSet
from netvol.errors import NoDevicesError, UnresolvedDeviceError
from netvol.matchers import Matcher, default_cascade
from netvol.netinfo import NetInfo
from netvol.stats import Stats, is_active

logger = logging.getLogger(__name__)


def match_token(token: str, info: NetInfo, matchers: Sequence[Matcher]) -> DevSet:
    """Run the matcher cascade for one token; the first hit wins."""
    for m in matchers:
        ok, found = m.match(token, info)
        if ok:
            logger.debug("%r matched by %s: %s", token, m.name, " ".join(found))
            return found
    raise UnresolvedDeviceError(token)


def default_devices(snapshot: Stats, info: NetInfo, exclude: Iterable[str] = (),
                    include_loopback: bool = False) -> list[str]:
    """Every device that has received traffic, less loopback and exclusions."""
    excluded = DevSet(exclude)
    keys = DevSet()
    for name, st in snapshot.items():
        if not is_active(st):
            continue
        if not include_loopback and info.is_loopback(name):
            continue
        if name in excluded:
            continue
        keys.add(name)
    return keys.members()


def resolve(tokens: Sequence[str], exclude: Iterable[str], include_loopback: bool,
            info: NetInfo, snapshot: Stats,
            matchers: Sequence[Matcher] | None = None) -> list[str]:
    """Resolve device specifiers to a sorted, duplicate-free device list.

    With no tokens, pick every active device in `snapshot` instead. Raises
    UnresolvedDeviceError for a token nothing matches and NoDevicesError if
    exclusions leave nothing.
    """
    if not tokens:
        keys = default_devices(snapshot, info, exclude, include_loopback)
    else:
        if matchers is None:
            matchers = default_cascade()
        # several tokens may match overlapping devices
        found = DevSet()
        for token in tokens:
            found.add_all(match_token(token, info, matchers))
        found.remove_all(exclude)
        keys = found.members()

    # -x/-P can take out everything, even in 'watch it all' mode
    if not keys:
        raise NoDevicesError()
    return keys
