"""Tests for device enumeration and nested device names."""

import json

import pytest

from instfetch.lib.devices import BusType, DeviceEnumerator, bus_type_for, part_name

LSBLK = json.dumps(
    {
        "blockdevices": [
            {"name": "sda", "type": "disk", "tran": "sata"},
            {"name": "sdb", "type": "disk", "tran": "usb"},
            {"name": "sr0", "type": "rom", "tran": "sata"},
            {"name": "nvme0n1", "type": "disk", "tran": "nvme"},
            {"name": "mmcblk0", "type": "disk", "tran": "usb"},
        ]
    }
)


@pytest.fixture
def dev_root(tmp_path):
    d = tmp_path / "dev"
    d.mkdir()
    for name in ("sda", "sda1", "sda2", "sdb", "nvme0n1", "nvme0n1p1", "mmcblk0"):
        (d / name).touch()
    return d


@pytest.fixture
def enumerator(dev_root, runner):
    runner.on(["lsblk"], stdout=LSBLK)
    return DeviceEnumerator(dev_root=str(dev_root), runner=runner)


class TestNaming:
    """Tests for partition naming and bus classification."""

    @pytest.mark.parametrize(
        "disk,n,expected",
        [("sdb", 1, "sdb1"), ("nvme0n1", 2, "nvme0n1p2"), ("mmcblk0", 1, "mmcblk0p1")],
    )
    def test_part_name(self, disk, n, expected):
        """Disks ending in a digit get a 'p' separator."""
        assert part_name(disk, n) == expected

    def test_bus_type(self):
        """sd/sr devices sit on the SCSI bus."""
        assert bus_type_for("sdb") is BusType.SCSI
        assert bus_type_for("nvme0n1") is BusType.OTHER


class TestEnumerate:
    """Tests for enumerating disks when no host is given."""

    def test_device_lists_all_disks_and_partitions(self, enumerator):
        """Every disk comes first, then its existing partitions."""
        names = [c.name for c in enumerator.enumerate("device")]
        assert names == ["sda", "sda1", "sda2", "sdb", "nvme0n1", "nvme0n1p1", "mmcblk0"]

    def test_usb_keeps_only_scsi_usb_disks(self, enumerator):
        """usb:// only probes USB disks on the SCSI bus."""
        cands = enumerator.enumerate("usb")
        assert [c.name for c in cands] == ["sdb"]
        assert cands[0].bus_type is BusType.SCSI
        assert cands[0].index == 0

    def test_probes_past_four_while_partitions_exist(self, dev_root, runner):
        """Partition probing continues beyond 4 as long as nodes exist."""
        for n in range(1, 7):
            (dev_root / f"sdb{n}").touch()
        runner.on(["lsblk"], stdout=json.dumps({"blockdevices": [{"name": "sdb", "type": "disk", "tran": "usb"}]}))
        cands = DeviceEnumerator(dev_root=str(dev_root), runner=runner).enumerate("usb")
        assert [c.index for c in cands] == [0, 1, 2, 3, 4, 5, 6]

    def test_gaps_below_five_are_tolerated(self, dev_root, runner):
        """A missing partition 1 does not hide partition 3."""
        (dev_root / "sdb3").touch()
        runner.on(["lsblk"], stdout=json.dumps({"blockdevices": [{"name": "sdb", "type": "disk", "tran": "usb"}]}))
        cands = DeviceEnumerator(dev_root=str(dev_root), runner=runner).enumerate("usb")
        assert [c.name for c in cands] == ["sdb", "sdb3"]

    def test_lsblk_failure_means_no_candidates(self, dev_root, runner):
        """A broken lsblk yields an empty list, not an exception."""
        runner.on(["lsblk"], 1)
        assert DeviceEnumerator(dev_root=str(dev_root), runner=runner).enumerate("device") == []

    def test_garbage_lsblk_output(self, dev_root, runner):
        """Unparseable output yields an empty list."""
        runner.on(["lsblk"], stdout="not json")
        assert DeviceEnumerator(dev_root=str(dev_root), runner=runner).enumerate("device") == []


class TestNestedDevices:
    """Tests for nested device path resolution."""

    def test_cciss(self, dev_root, runner):
        """cciss/c1d0p5 is folded into the device name."""
        (dev_root / "cciss").mkdir()
        (dev_root / "cciss" / "c1d0p5").touch()
        enum = DeviceEnumerator(dev_root=str(dev_root), runner=runner)
        cands, path = enum.candidates("device", "cciss", "c1d0p5/profile.xml")
        assert [c.name for c in cands] == ["cciss/c1d0p5"]
        assert cands[0].dev_path == "/dev/cciss/c1d0p5"
        assert path == "profile.xml"
        assert runner.commands("lsblk") == []

    def test_leading_slash_in_path(self, dev_root, runner):
        """A URL path starting with / resolves the same way."""
        (dev_root / "cciss").mkdir()
        enum = DeviceEnumerator(dev_root=str(dev_root), runner=runner)
        assert enum.resolve_nested("cciss", "/c1d0p5/profile.xml") == ("cciss/c1d0p5", "profile.xml")

    def test_terminates_when_path_runs_out(self, dev_root, runner):
        """Directories all the way down cannot cause an endless loop."""
        (dev_root / "a" / "b" / "c").mkdir(parents=True)
        enum = DeviceEnumerator(dev_root=str(dev_root), runner=runner)
        assert enum.resolve_nested("a", "b/c") == ("a/b/c", "")

    def test_plain_device_is_untouched(self, dev_root, runner):
        """A regular device node is used as is."""
        enum = DeviceEnumerator(dev_root=str(dev_root), runner=runner)
        cands, path = enum.candidates("device", "sda1", "/profile.xml")
        assert [c.name for c in cands] == ["sda1"]
        assert path == "/profile.xml"
