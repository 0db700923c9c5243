import pytest

from netvol.netinfo import NetInfo
from netvol.stats import DevStat


@pytest.fixture
def info():
    return NetInfo.build(
        ["eth0", "eth1", "wlan0", "lo", "ppp0", "bond0"],
        loopback=["lo"],
        point_to_point=["ppp0"],
        addrs=[
            ("eth0", "10.0.0.5"),
            ("eth1", "192.168.1.1"),
            ("wlan0", "192.168.66.20"),
            ("lo", "127.0.0.1"),
            ("lo", "::1"),
            ("ppp0", "172.29.4.1"),
            # VRRP style shared address
            ("eth0", "10.0.0.100"),
            ("bond0", "10.0.0.100"),
            ("eth0", "fe80::1%eth0"),
        ],
    )


def stat(when=0.0, rx=0, tx=0, rxp=0, txp=0, mono=None):
    # unless told otherwise, the two clocks agree
    if mono is None:
        mono = when
    return DevStat(when, mono, rx_bytes=rx, tx_bytes=tx, rx_packets=rxp, tx_packets=txp)


@pytest.fixture
def snapshot():
    return {
        "eth0": stat(100.0, rx=1000, tx=500, rxp=10, txp=5),
        "eth1": stat(100.0, rx=2000, tx=0, rxp=20, txp=0),
        "wlan0": stat(100.0, rx=0, tx=300, rxp=0, txp=3),
        "lo": stat(100.0, rx=50, tx=50, rxp=1, txp=1),
        "ppp0": stat(100.0, rx=70, tx=70, rxp=1, txp=1),
        "bond0": stat(100.0),
    }
