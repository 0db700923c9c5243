"""netvol: per-device network bandwidth and packet rate reporting.

The interesting parts are netvol.resolver (turning device specifiers into
device names, via the matchers in netvol.matchers) and netvol.stats
(turning counter snapshots into rates).
"""

__version__ = "0.3.0"
