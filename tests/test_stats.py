import pytest

from netvol.errors import AcquisitionError
from netvol.stats import (
    KB,
    MB,
    DevDelta,
    ProcNetDevProvider,
    PsutilProvider,
    default_provider,
    delta,
    diff_all,
    is_active,
    parse_net_dev,
    rates,
)
from tests.conftest import stat

NET_DEV = """\
Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:   12345     100    0    0    0     0          0         0    12345     100    0    0    0     0       0          0
  eth0: 9876543    5432    0    0    0     0          0        12  1234567    4321    0    0    0     0       0          0
 wlan0:       0       0    0    0    0     0          0         0      840      10    0    0    0     0       0          0
"""


class TestDelta:
    def test_valid(self):
        d, good = delta(stat(10.0, 100, 200, 3, 4), stat(12.0, 150, 260, 5, 9))
        assert good
        assert (d.rx_bytes, d.tx_bytes, d.rx_packets, d.tx_packets) == (50, 60, 2, 5)
        assert d.elapsed == 2.0
        assert d.when == 12.0

    def test_unchanged_is_valid(self):
        d, good = delta(stat(1.0, 5, 5, 5, 5), stat(2.0, 5, 5, 5, 5))
        assert good
        assert d.rx_bytes == 0

    @pytest.mark.parametrize("field", ["rx_bytes", "tx_bytes", "rx_packets", "tx_packets"])
    def test_any_rollover_invalidates(self, field):
        old = stat(1.0, 100, 100, 100, 100)
        new_fields = dict(rx=200, tx=200, rxp=200, txp=200)
        key = {"rx_bytes": "rx", "tx_bytes": "tx", "rx_packets": "rxp", "tx_packets": "txp"}[field]
        new_fields[key] = 50
        d, good = delta(old, stat(2.0, **new_fields))
        assert not good
        assert getattr(d, field) == 0
        assert d.elapsed == 1.0

    def test_elapsed_ignores_wall_clock_steps(self):
        # wall clock stepped forward an hour between reads, one real second passed
        old = stat(1000.0, rx=0, mono=50.0)
        new = stat(4600.0, rx=1_000_000, mono=51.0)
        d, good = delta(old, new)
        assert good
        assert d.elapsed == 1.0
        assert d.when == 4600.0
        assert rates(d).rx_bw == 1_000_000

    def test_u64_counters(self):
        top = 2**64 - 1
        d, good = delta(stat(1.0, top - 10), stat(2.0, top))
        assert good and d.rx_bytes == 10
        _, good = delta(stat(1.0, top), stat(2.0, 5))
        assert not good


class TestDiffAll:
    def test_only_devices_in_both(self):
        old = {"eth0": stat(1.0, 10), "gone0": stat(1.0, 10)}
        new = {"eth0": stat(2.0, 30), "new0": stat(2.0, 99)}
        out = diff_all(old, new)
        assert list(out) == ["eth0"]
        assert out["eth0"].rx_bytes == 20

    def test_rollover_dropped(self):
        old = {"eth0": stat(1.0, 10, 10), "eth1": stat(1.0, 500)}
        new = {"eth0": stat(2.0, 20, 20), "eth1": stat(2.0, 5)}
        assert list(diff_all(old, new)) == ["eth0"]

    def test_zero_elapsed_dropped(self):
        old = {"eth0": stat(5.0, 10)}
        assert diff_all(old, {"eth0": stat(5.0, 20)}) == {}
        assert diff_all(old, {"eth0": stat(4.0, 20)}) == {}

    def test_rate_reproduces_counts(self):
        old = {"eth0": stat(1.0, 100, 200, 1, 2)}
        new = {"eth0": stat(2.0, 1100, 2200, 11, 22)}
        r = rates(diff_all(old, new)["eth0"], 1)
        assert (r.rx_bw, r.tx_bw, r.rx_pps, r.tx_pps) == (1000, 2000, 10, 20)


class TestRates:
    def test_scaled(self):
        d = DevDelta(when=2.0, elapsed=2.0, rx_bytes=4 * MB, tx_bytes=2 * KB, rx_packets=10, tx_packets=4)
        r = rates(d, MB)
        assert r.rx_bw == 2.0
        assert r.tx_bw == pytest.approx(1 / 1024)
        assert r.rx_pps == 5.0 and r.tx_pps == 2.0

    def test_no_elapsed(self):
        assert rates(DevDelta(when=1.0, elapsed=0.0, rx_bytes=10)) is None
        assert rates(DevDelta(when=1.0, elapsed=-1.0, rx_bytes=10)) is None


def test_is_active():
    assert is_active(stat(rx=1))
    assert not is_active(stat(tx=1000))


class TestProcNetDev:
    def test_parse(self):
        st = parse_net_dev(NET_DEV, 42.0, 42.0)
        assert sorted(st) == ["eth0", "lo", "wlan0"]
        assert st["eth0"] == stat(42.0, 9876543, 1234567, 5432, 4321)
        assert st["wlan0"].rx_bytes == 0 and st["wlan0"].tx_packets == 10

    def test_no_space_after_colon(self):
        text = NET_DEV.splitlines()
        text[3] = "  eth0:9876543    5432    0    0    0     0          0        12  1234567    4321    0    0    0     0       0          0"
        st = parse_net_dev("\n".join(text), 1.0, 1.0)
        assert st["eth0"].rx_bytes == 9876543

    def test_headers_only(self):
        with pytest.raises(AcquisitionError):
            parse_net_dev("\n".join(NET_DEV.splitlines()[:2]), 1.0, 1.0)

    def test_bad_field_count(self):
        with pytest.raises(AcquisitionError):
            parse_net_dev(NET_DEV + "  eth9: 1 2 3\n", 1.0, 1.0)

    def test_provider_reads_file(self, tmp_path):
        p = tmp_path / "dev"
        p.write_text(NET_DEV)
        st = ProcNetDevProvider(str(p)).fill()
        assert st["lo"].rx_bytes == 12345
        assert len({s.when for s in st.values()}) == 1
        assert len({s.mono for s in st.values()}) == 1
        with pytest.raises(TypeError):
            st["lo"] = stat()

    def test_provider_missing_file(self, tmp_path):
        with pytest.raises(AcquisitionError):
            ProcNetDevProvider(str(tmp_path / "nope")).fill()

    def test_provider_empty_file(self, tmp_path):
        p = tmp_path / "dev"
        p.write_text("")
        with pytest.raises(AcquisitionError):
            ProcNetDevProvider(str(p)).fill()

    def test_default_provider(self, tmp_path):
        (tmp_path / "net").mkdir()
        (tmp_path / "net" / "dev").write_text(NET_DEV)
        assert isinstance(default_provider(str(tmp_path)), ProcNetDevProvider)
        assert isinstance(default_provider(str(tmp_path / "elsewhere")), PsutilProvider)


def test_psutil_provider(monkeypatch):
    from collections import namedtuple

    import netvol.stats

    snetio = namedtuple("snetio", "bytes_sent bytes_recv packets_sent packets_recv")
    calls = []

    def counters(pernic, nowrap):
        calls.append((pernic, nowrap))
        return {"eth0": snetio(10, 20, 1, 2)}

    monkeypatch.setattr(netvol.stats.psutil, "net_io_counters", counters)
    st = PsutilProvider().fill()
    assert calls == [(True, False)]
    e = st["eth0"]
    assert (e.rx_bytes, e.tx_bytes, e.rx_packets, e.tx_packets) == (20, 10, 2, 1)
    assert e.mono <= netvol.stats.time.monotonic()
