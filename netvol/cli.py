"""netvol command line: report per-second network device traffic.

Reports can be in MB/s or KB/s and can include timestamps. Devices can be
'all active devices', specific devices, or anything netvol.matchers knows
how to match.
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
import time
from typing import Sequence

from netvol.config import Config, configure_logging
from netvol.errors import ConfigError, IntervalConflictError, NetvolError
from netvol.graph import RateGraph
from netvol.matchers import default_cascade
from netvol.netinfo import NetInfo, discover
from netvol.netnames import SiteTable, default_table, load_netnames
from netvol.report import format_delta, list_specials, report_devices, report_what
from netvol.resolver import resolve
from netvol.stats import KB, MB, DevDelta, Stats, StatsProvider, default_provider, diff_all, is_active, rates

logger = logging.getLogger(__name__)

_UINT_RE = re.compile(r"0[xX][0-9a-fA-F]+|0[bB][01]+|0[oO]?[0-7]+|[1-9][0-9]*|0")

NOTE = """
Default is to report on all network devices that have received traffic.

Network device names can include shell glob patterns (eg 'enp*f*'),
interface IP addresses, wildcarded IP addresses (eg '127.*'), CIDR
netblocks (match any interface with an address in the netblock) and a
few special names like 'me' (which tries to do an IP address lookup on
the hostname and go from there). Use -L to see the list of special names.
A single trailing number is taken as the delay in seconds.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netvol",
        usage="%(prog)s [options] [network-dev [network-dev ...]] [seconds]",
        description="Report network device bandwidth and packet rates.",
        epilog=NOTE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("devices", nargs="*", help=argparse.SUPPRESS)
    # normal operation
    parser.add_argument("-l", dest="include_loopback", action="store_true",
                        help="when reporting on everything, report on loopback too")
    parser.add_argument("-T", dest="timestamps", action="store_true",
                        help="include timestamps in output")
    parser.add_argument("-z", dest="show_zero", action="store_true",
                        help="show devices even if they have no activity this period")
    parser.add_argument("-d", dest="delay", type=float, default=None, metavar="SECONDS",
                        help=f"delay between reports (default: {Config.INTERVAL:g})")
    parser.add_argument("-k", dest="kilobytes", action="store_true",
                        help="report bandwidth in KB/s instead of MB/s")
    parser.add_argument("-b", dest="blank_line", action="store_true",
                        help="print a blank line between successive reports")
    parser.add_argument("-x", dest="exclude", default="", metavar="DEVICES",
                        help="devices to specifically exclude (comma-separated)")
    parser.add_argument("-P", dest="no_ptp", action="store_true",
                        help="exclude all point to point devices")
    # special reporting
    parser.add_argument("-R", dest="report", action="store_true",
                        help="just report what devices we'd monitor")
    parser.add_argument("-L", dest="specials", action="store_true",
                        help="just list available special names")
    parser.add_argument("-W", dest="report_what", action="store_true",
                        help="just report what IPs each interface has")
    parser.add_argument("-6", dest="ipv6", action="store_true",
                        help="include IPv6 IPs in -W")
    parser.add_argument("-G", dest="graph", action="store_true",
                        help="draw a live graph of total RX/TX instead of text")
    parser.add_argument("--netnames", default=Config.NETNAMES, metavar="FILE",
                        help="YAML file of site names to use instead of the built-in ones")
    parser.add_argument("--debug", action="store_true",
                        help="log how device specifiers were matched")
    return parser


def parse_seconds(text: str) -> int | None:
    """Parse an unsigned integer the way C and Go do with base 0.

    Decimal, 0x hex, 0b binary, and 0o or plain leading-zero octal. No
    signs and no underscores. None if text isn't such a number.
    """
    if not _UINT_RE.fullmatch(text):
        return None
    if len(text) > 1 and text[0] == "0" and text[1].isdigit():
        return int(text, 8)
    return int(text, 0)


def split_interval(tokens: Sequence[str], delay: float | None,
                   default: float | None = None) -> tuple[list[str], float | None]:
    """Peel a trailing positive integer off the device list as the delay.

    Giving -d as well is fine if it agrees, or if it is just the default.
    """
    if default is None:
        default = Config.INTERVAL
    tokens = list(tokens)
    if not tokens:
        return tokens, delay
    secs = parse_seconds(tokens[-1])
    if secs is None or secs <= 0:
        return tokens, delay
    if delay is not None and delay != default and delay != secs:
        raise IntervalConflictError(delay, secs)
    return tokens[:-1], float(secs)


def parse_excludes(text: str, info: NetInfo | None = None, no_ptp: bool = False) -> list[str]:
    excludes = [x.strip() for x in text.split(",") if x.strip()]
    if no_ptp and info is not None:
        excludes.extend(sorted(info.point_to_point))
    return excludes


def _howmany(*flags: bool) -> int:
    return sum(1 for f in flags if f)


class Monitor:
    """Picks which devices to report on each cycle.

    With explicit devices the list is fixed up front. Otherwise it is
    recomputed every cycle from whatever is active, so devices that
    appear later get picked up.
    """

    def __init__(self, keys: list[str] | None, info: NetInfo, *, exclude: Sequence[str] = (),
                 include_loopback: bool = False, show_zero: bool = False):
        self.keys = keys
        self.info = info
        self.exclude = frozenset(exclude)
        self.include_loopback = include_loopback
        self.show_zero = show_zero

    def rows(self, oldst: Stats, newst: Stats) -> list[tuple[str, DevDelta]]:
        deltas = diff_all(oldst, newst)
        if self.keys is None:
            keys = sorted(k for k in deltas if is_active(newst[k]))
        else:
            keys = self.keys

        out = []
        for k in keys:
            if not self.include_loopback and self.info.is_loopback(k):
                continue
            if k in self.exclude:
                continue
            # an explicitly named device may have disappeared
            d = deltas.get(k)
            if d is None:
                continue
            if not self.show_zero and d.rx_bytes == 0 and d.tx_bytes == 0:
                continue
            out.append((k, d))
        return out


def run_text(monitor: Monitor, provider: StatsProvider, oldst: Stats, interval: float, *,
             divisor: float, units: str, timestamps: bool, blank_line: bool) -> None:
    while True:
        time.sleep(interval)
        newst = provider.fill()
        reported = False
        for name, d in monitor.rows(oldst, newst):
            line = format_delta(name, d, divisor, units, timestamps)
            if line is None:
                continue
            print(line, flush=True)
            reported = True
        # only separate cycles that actually printed something
        if reported and blank_line:
            print(flush=True)
        oldst = newst


def run_graph(monitor: Monitor, provider: StatsProvider, oldst: Stats, interval: float,
              title: str) -> None:
    state = {"oldst": oldst}

    def sample() -> dict[str, float]:
        newst = provider.fill()
        rx = tx = 0.0
        for _, d in monitor.rows(state["oldst"], newst):
            r = rates(d)
            if r is not None:
                rx += r.rx_bw
                tx += r.tx_bw
        state["oldst"] = newst
        return {"rx": rx, "tx": tx}

    RateGraph(interval=interval, title=title).run(sample)


def _site_table(path: str | None) -> SiteTable:
    if path:
        return load_netnames(path)
    return default_table()


def run(args: argparse.Namespace, provider: StatsProvider | None = None,
        info: NetInfo | None = None) -> int:
    if _howmany(args.specials, args.report_what, args.report, args.graph,
                args.timestamps or args.show_zero or args.kilobytes or args.blank_line) > 1:
        raise ConfigError("conflicting command line arguments; see -h")
    # -R often comes with device arguments, but -L and -W ignore them
    if args.devices and (args.specials or args.report_what):
        raise ConfigError("-L or -W given with command line arguments")

    table = _site_table(args.netnames)

    # -L doesn't need to look at any network devices
    if args.specials:
        list_specials(table, sys.stdout)
        return 0

    tokens, delay = split_interval(args.devices, args.delay)
    interval = delay if delay is not None else Config.INTERVAL
    if interval <= 0:
        raise ConfigError("delay must be positive")

    # naming devices means you want loopback if you named it
    include_loopback = args.include_loopback or bool(tokens)

    # argument errors take priority over trouble reading devices
    if info is None:
        info = discover()

    if args.report_what:
        report_what(info, sys.stdout, ipv6=args.ipv6,
                    include_loopback=args.include_loopback, no_ptp=args.no_ptp)
        return 0

    if provider is None:
        provider = default_provider(Config.PROC_BASE)
    excludes = parse_excludes(args.exclude, info, args.no_ptp)

    oldst = provider.fill()
    keys = resolve(tokens, excludes, include_loopback, info, oldst,
                   matchers=default_cascade(table))

    if args.report:
        report_devices(keys, sys.stdout)
        return 0

    monitor = Monitor(keys if tokens else None, info, exclude=excludes,
                      include_loopback=include_loopback, show_zero=args.show_zero)
    if args.graph:
        run_graph(monitor, provider, oldst, interval, title=" ".join(keys) if tokens else "Net")
        return 0

    divisor, units = (KB, "KB/s") if args.kilobytes else (MB, "MB/s")
    run_text(monitor, provider, oldst, interval, divisor=divisor, units=units,
             timestamps=args.timestamps, blank_line=args.blank_line)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.debug else None)
    try:
        return run(args)
    except NetvolError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
