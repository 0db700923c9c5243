from netvol.devset import DevSet


class TestDevSet:
    def test_members_sorted_and_unique(self):
        s = DevSet(["eth1", "eth0"])
        s.add("eth0")
        s.add_all(["wlan0", "eth1"])
        assert s.members() == ["eth0", "eth1", "wlan0"]
        assert list(s) == ["eth0", "eth1", "wlan0"]
        assert len(s) == 3

    def test_remove_absent_is_noop(self):
        s = DevSet(["eth0"])
        s.remove("eth9")
        assert s.members() == ["eth0"]
        s.remove("eth0")
        assert not s
        assert "eth0" not in s

    def test_equality(self):
        assert DevSet(["a", "b"]) == DevSet(["b", "a"])
        assert DevSet(["a"]) == {"a"}
        assert DevSet(["a"]) != DevSet(["b"])
