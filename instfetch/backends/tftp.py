from __future__ import annotations

import logging

from ..outcome import ErrorKind, Outcome, _
from ..request import RetrievalRequest
from .base import FetchContext

logger = logging.getLogger(__name__)


class TftpBackend:
    """TFTP through curl, which ships in the installation system."""

    schemes = ("tftp",)

    def fetch(self, request: RetrievalRequest, ctx: FetchContext) -> Outcome:
        path = request.path.lstrip("/")
        port = request.extra_tokens.get("port")
        host = f"{request.host}:{port}" if port else request.host
        r = ctx.runner(
            [
                "curl",
                "--silent",
                "--show-error",
                "--fail",
                "--max-time",
                str(int(ctx.settings.tftp_timeout)),
                "--output",
                request.destination,
                f"tftp://{host}/{path}",
            ],
            check=False,
        )
        if r.ok:
            return ctx.diagnostics.succeed()

        logger.error("File %s can't be found on %s (curl exit=%s)", request.path, request.host, r.returncode)
        ctx.diagnostics.record(
            _("Cannot find URL '%(location)s' via protocol TFTP.") % {"location": f"{request.host}:{request.path}"},
            ErrorKind.TRANSFER_FAILURE,
        )
        return ctx.diagnostics.fail()
