from __future__ import annotations

import logging
import os

from ..lib.files import copy_local_file, file_size
from ..lib.install_media import InstallMedia
from ..outcome import ErrorKind, Outcome, _
from ..request import RetrievalRequest
from .base import FetchContext

logger = logging.getLogger(__name__)


class FileBackend:
    """``file://`` locators.

    Tried in order: the installation source directory, the path as given,
    and finally the installation medium itself when the system booted from
    CD/DVD.
    """

    schemes = ("file",)

    def _copied(self, src: str, dest: str) -> bool:
        return copy_local_file(src, dest) and file_size(dest) > 0

    def _from_install_media(self, request: RetrievalRequest, ctx: FetchContext) -> bool:
        media = InstallMedia.load(ctx.settings.install_inf)
        if media.boot != "cd" or not media.boot_device:
            logger.info("Not booted from optical media (boot=%s), no medium to search", media.boot or "-")
            return False

        logger.info("Trying to find file on installation media: %s", media.boot_device)
        mp = ctx.mounts.mount_optical(media.boot_device, ctx.settings.optical_retry)
        if mp is None:
            logger.warning("Mounting %s failed", media.boot_device)
            ctx.diagnostics.append(
                _("Mounting %(what)s failed.") % {"what": media.boot_device},
                ErrorKind.MOUNT_FAILURE,
            )
            return False

        try:
            src = os.path.join(mp.local_path, request.path.lstrip("/"))
            return self._copied(src, request.destination)
        finally:
            ctx.mounts.release(mp)

    def fetch(self, request: RetrievalRequest, ctx: FetchContext) -> Outcome:
        diag = ctx.diagnostics
        source_dir = ctx.settings.install_source_dir
        in_source = os.path.join(source_dir, request.path.lstrip("/"))

        if file_size(in_source) > 0 and self._copied(in_source, request.destination):
            return diag.succeed()
        diag.append(
            _("Reading file on %(dir)s/%(path)s failed.\n") % {"dir": source_dir, "path": request.path.lstrip("/")},
            ErrorKind.NOT_FOUND,
        )

        if self._copied(request.path, request.destination):
            return diag.succeed()
        diag.append(_("Reading file on %(path)s failed.\n") % {"path": request.path}, ErrorKind.NOT_FOUND)

        if self._from_install_media(request, ctx):
            return diag.succeed()

        logger.error("Reading %s on the installation medium failed", request.path)
        diag.append(
            _("Reading a file on CD failed. Path: %(mp)s/%(path)s.")
            % {"mp": ctx.mounts.mount_point, "path": request.path.lstrip("/")},
            ErrorKind.NOT_FOUND,
        )
        return diag.fail()
