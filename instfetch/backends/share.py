from __future__ import annotations

import logging
import os
from typing import Optional, Sequence, Tuple

from ..lib.files import copy_with_cp
from ..lib.mounts import MountPoint
from ..outcome import ErrorKind, Outcome, _
from ..request import RetrievalRequest
from .base import FetchContext

logger = logging.getLogger(__name__)


class ShareBackend:
    """Mount the directory holding the file, copy the file, unmount.

    ``option_sets`` are tried in order until one mounts; each is a single
    attempt.
    """

    schemes: Tuple[str, ...] = ()
    option_sets: Tuple[Sequence[str], ...] = ()

    def share(self, request: RetrievalRequest) -> str:
        raise NotImplementedError

    def _mount(self, share: str, ctx: FetchContext) -> Optional[MountPoint]:
        for options in self.option_sets:
            mp = ctx.mounts.mount_scoped(share, options)
            if mp is not None:
                return mp
        return None

    def fetch(self, request: RetrievalRequest, ctx: FetchContext) -> Outcome:
        share = self.share(request)
        mp = self._mount(share, ctx)
        if mp is None:
            logger.warning("Mount of %s failed", share)
            ctx.diagnostics.record(_("Mounting %(what)s failed.") % {"what": share}, ErrorKind.MOUNT_FAILURE)
            return ctx.diagnostics.fail()

        remote = os.path.join(mp.local_path, request.basename)
        try:
            copied = copy_with_cp(remote, request.destination, runner=ctx.runner)
        finally:
            ctx.mounts.release(mp)

        if copied:
            return ctx.diagnostics.succeed()

        logger.error("Remote file %s can't be retrieved", remote)
        ctx.diagnostics.record(
            _("Remote file %(path)s cannot be retrieved") % {"path": remote},
            ErrorKind.TRANSFER_FAILURE,
        )
        return ctx.diagnostics.fail()


class NfsBackend(ShareBackend):
    schemes = ("nfs",)
    option_sets = (
        ("-o", "ro,noatime,nolock"),
        ("-o", "ro,noatime", "-t", "nfs4"),
    )

    def share(self, request: RetrievalRequest) -> str:
        return f"{request.host}:{request.dirname}"


class CifsBackend(ShareBackend):
    schemes = ("cifs",)
    option_sets = (("-t", "cifs", "-o", "guest,ro,noatime"),)

    def share(self, request: RetrievalRequest) -> str:
        return f"//{request.host}{request.dirname}"
