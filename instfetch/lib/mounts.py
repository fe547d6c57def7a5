from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from .command import Runner, run_cmd
from .env import MOUNT_DIR_NAME, PATHS
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


@dataclass(frozen=True)
class MountPoint:
    local_path: str
    device_or_share: str
    options: tuple[str, ...] = ()
    # True when somebody else mounted it; we must leave it alone.
    pre_existing: bool = False


def scoped_mount_path(scratch_dir: str, root_dir: str = "") -> str:
    """Return the per-process scoped mount point.

    When fetching on behalf of a target root (``root_dir``), the mount point
    lives below that root so the mounted tree is visible from inside it too.
    """

    mp = os.path.join(scratch_dir, MOUNT_DIR_NAME)
    if root_dir and root_dir != "/":
        mp = os.path.join(root_dir, mp.lstrip("/"))
    return mp


def _unescape(field: str) -> str:
    # /proc/mounts encodes space, tab, newline and backslash as \ooo
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


class MountManager:
    """Owns the scoped mount point for one retrieval.

    Only one mount may be active at a time; whoever mounts releases.
    """

    def __init__(
        self,
        mount_point: str,
        *,
        mount_table: str = PATHS.mount_table,
        runner: Runner = run_cmd,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.mount_point = mount_point
        self.mount_table = mount_table
        self.runner = runner
        self.sleep = sleep
        self.active: Optional[MountPoint] = None

    def prepare(self) -> None:
        self.runner(["mkdir", "-p", self.mount_point], check=False)

    def already_mounted(self, device: str) -> Optional[str]:
        """Return where ``device`` is mounted according to the live mount table."""

        try:
            lines = Path(self.mount_table).read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError as e:
            logger.warning("Cannot read mount table %s: %s", self.mount_table, e)
            return None

        wanted = {device, os.path.realpath(device)}
        for line in lines:
            fields = line.split()
            if len(fields) < 2:
                continue
            src = _unescape(fields[0])
            if src in wanted or (src.startswith("/") and os.path.realpath(src) in wanted):
                return _unescape(fields[1])
        return None

    def mount(self, target: str, mount_point: str, options: Sequence[str] = ()) -> bool:
        r = self.runner(["mount", *options, target, mount_point], check=False)
        if not r.ok:
            logger.warning("Mount failed: %s on %s (options=%s, exit=%s)", target, mount_point, " ".join(options), r.returncode)
        return r.ok

    def bind_mount(self, source: str, mount_point: str) -> bool:
        r = self.runner(["mount", "-v", "--bind", source, mount_point], check=False)
        if not r.ok:
            logger.warning("Bind mount failed: %s on %s (exit=%s)", source, mount_point, r.returncode)
        return r.ok

    def unmount(self, mount_point: str) -> None:
        r = self.runner(["umount", mount_point], check=False)
        if not r.ok:
            logger.error("Unmounting %s failed (exit=%s)", mount_point, r.returncode)
        if self.active is not None and self.active.local_path == mount_point:
            self.active = None

    def _ensure_free(self) -> None:
        if self.active is not None:
            raise RuntimeError(f"Scoped mount point busy: {self.active.local_path}")

    def _claim(self, mp: MountPoint) -> MountPoint:
        self.active = mp
        return mp

    def mount_scoped(self, target: str, options: Sequence[str] = ()) -> Optional[MountPoint]:
        """Mount ``target`` on the scoped mount point (single attempt)."""

        self._ensure_free()
        self.prepare()
        if not self.mount(target, self.mount_point, options):
            return None
        return self._claim(MountPoint(local_path=self.mount_point, device_or_share=target, options=tuple(options)))

    def reuse_existing(self, device: str) -> Optional[MountPoint]:
        """Adopt an existing mount of ``device``, if any. Never unmounted by us."""

        existing = self.already_mounted(device)
        if existing is None:
            return None
        logger.info("%s is already mounted on %s", device, existing)
        return MountPoint(local_path=existing, device_or_share=device, pre_existing=True)

    def mount_optical(self, device: str, policy: RetryPolicy, options: Sequence[str] = ("-o", "ro")) -> Optional[MountPoint]:
        """Make ``device`` (a CD/DVD drive) available on the scoped mount point.

        If the medium is already mounted somewhere, bind-mount that tree;
        otherwise mount the device, retrying per ``policy`` while the drive
        spins up.
        """

        self._ensure_free()
        self.prepare()
        existing = self.already_mounted(device)
        if existing is not None:
            logger.info("%s is already mounted on %s, trying to bind mount", device, existing)
            if not self.bind_mount(existing, self.mount_point):
                return None
            return self._claim(MountPoint(local_path=self.mount_point, device_or_share=existing, options=("--bind",)))

        ok = policy.run(
            lambda: self.mount(device, self.mount_point, options),
            what=f"mount {device}",
            sleep=self.sleep,
        )
        if not ok:
            return None
        return self._claim(MountPoint(local_path=self.mount_point, device_or_share=device, options=tuple(options)))

    def release(self, mp: Optional[MountPoint]) -> None:
        if mp is None or mp.pre_existing:
            return
        self.unmount(mp.local_path)
