"""Exception types raised by netvol.

Core code raises these; only the command line front end turns them into a
diagnostic line and an exit status.
"""

from __future__ import annotations


class NetvolError(Exception):
    """Base class for all netvol failures."""


class ConfigError(NetvolError):
    """The operator asked for something that cannot work as given."""


class UnresolvedDeviceError(ConfigError):
    """A device specifier matched no network device by any strategy."""

    def __init__(self, token: str):
        super().__init__(f"device specifier '{token}' doesn't seem to exist or match anything")
        self.token = token


class NoDevicesError(ConfigError):
    """Resolution (after exclusions) left nothing to monitor."""

    def __init__(self, message: str = "wound up with no devices to monitor!"):
        super().__init__(message)


class IntervalConflictError(ConfigError):
    """Both -d and a trailing seconds argument were given, and they disagree."""

    def __init__(self, flag_seconds: float, trailing_seconds: int):
        super().__init__("given both -d and a trailing 'seconds' argument")
        self.flag_seconds = flag_seconds
        self.trailing_seconds = trailing_seconds


class AcquisitionError(NetvolError):
    """Counters or interface information could not be read from the system."""
