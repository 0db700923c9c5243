"""Counter snapshots and the deltas/rates computed between them."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Protocol

import psutil

from netvol.errors import AcquisitionError

logger = logging.getLogger(__name__)

KB = 1024
MB = KB * 1024

# /proc/net/dev bigger than this is not something we want to deal with
MAXSIZE = 128 * 1024


@dataclass(frozen=True)
class DevStat:
    """One device's counters at one instant.

    `when` is wall clock time, for display; `mono` is time.monotonic() at
    the same read and is what elapsed time is measured with.
    """
    when: float
    mono: float
    rx_bytes: int = 0
    tx_bytes: int = 0
    rx_packets: int = 0
    tx_packets: int = 0


@dataclass(frozen=True)
class DevDelta:
    """Counter differences between two DevStats of the same device.

    `when` is the wall clock time of the newer sample; `elapsed` is in
    seconds, measured on the monotonic clock.
    """
    when: float
    elapsed: float
    rx_bytes: int = 0
    tx_bytes: int = 0
    rx_packets: int = 0
    tx_packets: int = 0


@dataclass(frozen=True)
class Rates:
    rx_bw: float
    tx_bw: float
    rx_pps: float
    tx_pps: float


Stats = Mapping[str, DevStat]


def _sub_checked(old: int, new: int, good: bool) -> tuple[int, bool]:
    # a counter that went backwards has rolled over or been reset
    if old <= new:
        return new - old, good
    return 0, False


def delta(prior: DevStat, current: DevStat) -> tuple[DevDelta, bool]:
    """Diff two samples of one device.

    The result is good only if no counter went down. Elapsed time is
    filled in either way.
    """
    good = True
    rx_bytes, good = _sub_checked(prior.rx_bytes, current.rx_bytes, good)
    tx_bytes, good = _sub_checked(prior.tx_bytes, current.tx_bytes, good)
    rx_packets, good = _sub_checked(prior.rx_packets, current.rx_packets, good)
    tx_packets, good = _sub_checked(prior.tx_packets, current.tx_packets, good)
    d = DevDelta(
        when=current.when,
        elapsed=current.mono - prior.mono,
        rx_bytes=rx_bytes,
        tx_bytes=tx_bytes,
        rx_packets=rx_packets,
        tx_packets=tx_packets,
    )
    return d, good


def diff_all(prior: Stats, current: Stats) -> dict[str, DevDelta]:
    """Deltas for every device present in both snapshots.

    Devices that appeared or vanished in between are dropped, as are
    devices with rolled-over counters or no elapsed time.
    """
    out: dict[str, DevDelta] = {}
    for name, new in current.items():
        old = prior.get(name)
        if old is None:
            continue
        d, good = delta(old, new)
        if not good or d.elapsed <= 0:
            logger.debug("skipping %s: bad delta %r", name, d)
            continue
        out[name] = d
    return out


def rates(d: DevDelta, divisor: float = 1) -> Rates | None:
    """Per-second rates for a delta; bandwidth is divided by `divisor`.

    Returns None if no time has passed.
    """
    if d.elapsed <= 0:
        return None
    return Rates(
        rx_bw=d.rx_bytes / d.elapsed / divisor,
        tx_bw=d.tx_bytes / d.elapsed / divisor,
        rx_pps=d.rx_packets / d.elapsed,
        tx_pps=d.tx_packets / d.elapsed,
    )


def is_active(st: DevStat) -> bool:
    """Has the device ever received anything?

    Receiving is the test because systems will happily keep sending on
    dead links. Being administratively up isn't enough either.
    """
    return st.rx_bytes != 0


# ---- snapshot providers ----

class StatsProvider(Protocol):
    def fill(self) -> Stats: ...


def parse_net_dev(text: str, when: float, mono: float) -> dict[str, DevStat]:
    """Parse /proc/net/dev contents. The first two lines are headers."""
    lines = text.splitlines()
    if len(lines) < 3:
        raise AcquisitionError("no devices in /proc/net/dev")
    stats = {}
    for line in lines[2:]:
        if not line.strip():
            continue
        if ":" not in line:
            raise AcquisitionError(f"malformed line in /proc/net/dev: {line!r}")
        iface, data = line.split(":", 1)
        parts = data.split()
        if len(parts) != 16:
            raise AcquisitionError(f"incorrect number of fields: {len(parts) + 1} in {line!r}")
        try:
            counters = [int(parts[i]) for i in (0, 1, 8, 9)]
        except ValueError as e:
            raise AcquisitionError(f"bad counter in {line!r}: {e}") from e
        if any(c < 0 for c in counters):
            raise AcquisitionError(f"negative counter in {line!r}")
        rx_bytes, rx_packets, tx_bytes, tx_packets = counters
        stats[iface.strip()] = DevStat(when, mono, rx_bytes, tx_bytes, rx_packets, tx_packets)
    return stats


class ProcNetDevProvider:
    """Linux: everything comes from a single read of /proc/net/dev."""

    def __init__(self, path: str = "/proc/net/dev"):
        self.path = path

    def fill(self) -> Stats:
        # one read, so every device's counters are from the same moment
        try:
            with open(self.path, "rb") as f:
                when = time.time()
                mono = time.monotonic()
                data = f.read(MAXSIZE)
        except OSError as e:
            raise AcquisitionError(f"error reading {self.path}: {e}") from e
        if len(data) >= MAXSIZE:
            raise AcquisitionError(f"{self.path} is too big, over {MAXSIZE} bytes")
        if not data:
            raise AcquisitionError(f"read 0 bytes from {self.path}")
        return MappingProxyType(parse_net_dev(data.decode("ascii", "replace"), when, mono))


class PsutilProvider:
    """Everywhere else: psutil's per-NIC counters."""

    def fill(self) -> Stats:
        try:
            when = time.time()
            mono = time.monotonic()
            # nowrap=False: we want to see rollovers, not have them papered over
            counters = psutil.net_io_counters(pernic=True, nowrap=False)
        except (OSError, RuntimeError) as e:
            raise AcquisitionError(f"error reading network counters: {e}") from e
        return MappingProxyType({
            name: DevStat(when, mono, c.bytes_recv, c.bytes_sent, c.packets_recv, c.packets_sent)
            for name, c in counters.items()
        })


def default_provider(proc_base: str = "/proc") -> StatsProvider:
    path = os.path.join(proc_base, "net", "dev")
    if os.path.exists(path):
        return ProcNetDevProvider(path)
    logger.debug("%s not found, using psutil counters", path)
    return PsutilProvider()
