from __future__ import annotations

import logging
import os
from typing import Iterator, Optional

from ..lib.devices import DeviceCandidate
from ..lib.files import copy_with_cp
from ..outcome import ErrorKind, Outcome, _
from ..request import RetrievalRequest
from .base import FetchContext

logger = logging.getLogger(__name__)


class DeviceBackend:
    """Look for the file on a block device, or on every disk when none is named.

    ``device://sdb1/path`` probes one device; ``usb:///path`` and
    ``device:///path`` walk the enumerated disks and their partitions, and
    stop at the first one holding the file.
    """

    schemes = ("device", "usb")

    def _try(self, cand: DeviceCandidate, path: str, request: RetrievalRequest, ctx: FetchContext) -> bool:
        dev = cand.dev_path
        logger.info("Looking for %s on %s", path, dev)
        mp = ctx.mounts.reuse_existing(dev)
        if mp is None:
            mp = ctx.mounts.mount_scoped(dev, ("-o", "noatime"))
        if mp is None:
            logger.info("%s is not mounted and mount failed", dev)
            ctx.diagnostics.record(
                _("%(device)s is not mounted and mount failed") % {"device": dev},
                ErrorKind.MOUNT_FAILURE,
            )
            return False

        src = os.path.join(mp.local_path, path.lstrip("/"))
        try:
            copied = copy_with_cp(src, request.destination, runner=ctx.runner)
        finally:
            ctx.mounts.release(mp)

        if not copied:
            logger.info("File %s can't be found", src)
            ctx.diagnostics.record(_("File %(path)s cannot be found") % {"path": src}, ErrorKind.NOT_FOUND)
            return False
        logger.info("Found %s on %s", path, dev)
        return True

    def fetch(self, request: RetrievalRequest, ctx: FetchContext) -> Outcome:
        if not request.path.strip("/"):
            ctx.diagnostics.record(_("File %(path)s cannot be found") % {"path": request.path}, ErrorKind.NOT_FOUND)
            return ctx.diagnostics.fail()

        candidates, path = ctx.devices.candidates(request.scheme, request.host, request.path)
        if not candidates:
            logger.warning("No %s devices found", request.scheme)
            ctx.diagnostics.record(
                _("No device found to look for %(path)s on") % {"path": request.path},
                ErrorKind.NOT_FOUND,
            )
            return ctx.diagnostics.fail()

        # Generator: candidates after the first hit are never touched.
        hits: Iterator[DeviceCandidate] = (c for c in candidates if self._try(c, path, request, ctx))
        found: Optional[DeviceCandidate] = next(hits, None)
        if found is None:
            return ctx.diagnostics.fail()
        return ctx.diagnostics.succeed()
