"""Plain text output."""

from __future__ import annotations

import time
from typing import TextIO

from netvol.netinfo import NetInfo
from netvol.netnames import SiteTable
from netvol.stats import DevDelta, rates

# Timestamp format for -T. It omits the date for space.
HMS = "%H:%M:%S"


def format_delta(devname: str, d: DevDelta, divisor: float, units: str,
                 timestamp: bool = False) -> str | None:
    """One report line for a device, or None if the delta has no duration."""
    r = rates(d, divisor)
    if r is None:
        return None
    if timestamp:
        head = f"{devname:<8} {time.strftime(HMS, time.localtime(d.when)):>8} "
    else:
        head = f"{devname:<8} "
    return (head + f"{r.rx_bw:6.2f} RX {r.tx_bw:6.2f} TX ({units})   "
            f"packets/sec: {r.rx_pps:5.0f} RX {r.tx_pps:5.0f} TX")


def report_devices(keys: list[str], out: TextIO) -> None:
    out.write("netvol: devices would be:")
    for k in keys:
        out.write(f" {k}")
    out.write("\n")


def list_specials(table: SiteTable, out: TextIO) -> None:
    out.write("Supported special device names:\n")
    out.write(f"   {'me':<10}   device(s) with IP address of my hostname\n")
    for k in sorted(table.names):
        out.write(f"   {k:<10}   device(s) with {table.names[k]}\n")
    for k in sorted(table.groups):
        out.write(f"   {k:<10}   device(s) matching {' or '.join(table.groups[k])}\n")


def report_what(info: NetInfo, out: TextIO, *, ipv6: bool = False,
                include_loopback: bool = False, no_ptp: bool = False) -> None:
    """Report what IP addresses each device has.

    IPv6 addresses are left out by default; link-local ones are everywhere
    and clutter things up badly.
    """
    for dev, ips in info.addresses_by_device(ipv6=ipv6).items():
        if not include_loopback and info.is_loopback(dev):
            continue
        if no_ptp and info.is_point_to_point(dev):
            continue
        out.write(f"{dev:<8}  {' '.join(ips)}\n")
