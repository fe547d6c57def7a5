from __future__ import annotations

import enum
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from .command import Runner, run_cmd
from .env import PATHS

logger = logging.getLogger(__name__)

# Partitions 1..4 are always looked at, even on sticks without a partition table.
MIN_PARTITION_PROBES = 4


class BusType(str, enum.Enum):
    SCSI = "SCSI"
    OTHER = "other"


@dataclass(frozen=True)
class DeviceCandidate:
    name: str  # relative to /dev, e.g. "sdb1" or "cciss/c1d0p5"
    bus_type: BusType = BusType.OTHER
    index: int = 0  # 0 = whole disk

    @property
    def dev_path(self) -> str:
        return f"/dev/{self.name}"


def part_name(disk: str, n: int) -> str:
    # nvme/mmcblk devices use p suffix
    if disk.endswith(tuple("0123456789")):
        return f"{disk}p{n}"
    return f"{disk}{n}"


def bus_type_for(name: str) -> BusType:
    # USB mass storage is driven by the SCSI disk/cdrom drivers (sdX, srX).
    if name.startswith(("sd", "sr")):
        return BusType.SCSI
    return BusType.OTHER


class DeviceEnumerator:
    def __init__(self, *, dev_root: str = PATHS.dev_root, runner: Runner = run_cmd):
        self.dev_root = dev_root
        self.runner = runner

    def _exists(self, name: str) -> bool:
        return os.path.lexists(os.path.join(self.dev_root, name))

    def list_disks(self) -> List[Dict[str, Any]]:
        """Return ``lsblk`` disk descriptors: name, transport, bus type."""

        r = self.runner(["lsblk", "-J", "-d", "-o", "NAME,TYPE,TRAN"], check=False)
        if not r.ok:
            logger.error("lsblk failed (exit=%s), no disks to probe", r.returncode)
            return []
        try:
            data = json.loads(r.stdout or "{}")
        except ValueError as e:
            logger.error("Unparseable lsblk output: %s", e)
            return []

        disks = []
        for dev in data.get("blockdevices") or []:
            if dev.get("type") != "disk" or not dev.get("name"):
                continue
            name = os.path.basename(dev["name"])
            disks.append(
                {
                    "name": name,
                    "tran": (dev.get("tran") or "").lower(),
                    "bus": bus_type_for(name),
                }
            )
        return disks

    def probe_partitions(self, disk: str, bus: BusType) -> List[DeviceCandidate]:
        found = [DeviceCandidate(name=disk, bus_type=bus, index=0)]
        n = 0
        while True:
            n += 1
            name = part_name(disk, n)
            exists = self._exists(name)
            if exists:
                found.append(DeviceCandidate(name=name, bus_type=bus, index=n))
            if not exists and n >= MIN_PARTITION_PROBES:
                break
        return found

    def enumerate(self, scheme: str) -> List[DeviceCandidate]:
        out: List[DeviceCandidate] = []
        for disk in self.list_disks():
            if scheme == "usb" and (disk["tran"] != "usb" or disk["bus"] != BusType.SCSI):
                continue
            out.extend(self.probe_partitions(disk["name"], disk["bus"]))
        logger.info("Devices to look on: %s", [c.name for c in out])
        return out

    def resolve_nested(self, host: str, path: str) -> Tuple[str, str]:
        """Fold path components into ``host`` while ``/dev/<host>`` is a directory.

        Handles device names such as ``cciss/c1d0p5``, where part of the
        device name looks like a path segment.
        """

        while os.path.isdir(os.path.join(self.dev_root, host)):
            parts = [p for p in path.split("/") if p]
            if not parts:
                break
            host = f"{host}/{parts[0]}"
            path = "/".join(parts[1:])
            logger.info("Nested device found: host=%s path=%s", host, path)
        return host, path

    def candidates(self, scheme: str, host: str, path: str) -> Tuple[List[DeviceCandidate], str]:
        """Return the devices to try, in order, and the path to look for on them."""

        if not host:
            return self.enumerate(scheme), path
        host, path = self.resolve_nested(host, path)
        return [DeviceCandidate(name=host, bus_type=bus_type_for(host))], path
