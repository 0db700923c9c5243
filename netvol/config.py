"""Configuration defaults for netvol, overridable from the environment."""

from __future__ import annotations

import logging
import os


class Config:
    """Application configuration."""

    # Seconds between reports
    INTERVAL = float(os.environ.get('NETVOL_INTERVAL', 1.0))

    # Where proc lives; '/host/proc' when running in a container
    PROC_BASE = os.environ.get('NETVOL_PROC', '/host/proc' if os.path.exists('/host/proc/net/dev') else '/proc')

    # Optional YAML file of site names (see netvol.netnames)
    NETNAMES = os.environ.get('NETVOL_NETNAMES') or None

    # Logging
    LOG_LEVEL = os.environ.get('NETVOL_LOG_LEVEL', 'WARNING')


def configure_logging(level: str | int | None = None) -> None:
    """Send log output to stderr as 'netvol: message'."""
    if level is None:
        level = Config.LOG_LEVEL
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format='netvol: %(message)s')
