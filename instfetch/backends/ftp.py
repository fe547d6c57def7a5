from __future__ import annotations

import ftplib
import logging
import os
from typing import Optional

from ..lib.files import file_size
from ..outcome import ErrorKind, Outcome, _
from ..request import RetrievalRequest
from .base import FetchContext

logger = logging.getLogger(__name__)


def reply_code(reply: str) -> int:
    """Numeric code of an FTP reply such as ``226 Transfer complete``."""

    head = (reply or "").strip()[:3]
    return int(head) if head.isdigit() else 0


def ftp_port(value: Optional[str]) -> int:
    """Port from the locator, 21 when absent. Raises ValueError when unusable."""

    if not value:
        return 21
    port = int(value)
    if not 0 < port < 65536:
        raise ValueError(f"port out of range: {port}")
    return port


class FtpBackend:
    schemes = ("ftp",)

    # Indirection so tests can substitute a fake client.
    client_factory = ftplib.FTP

    def _get(self, request: RetrievalRequest, ctx: FetchContext) -> int:
        tok = request.extra_tokens
        port = ftp_port(tok.get("port"))
        ftp = self.client_factory()
        ftp.connect(request.host, port, timeout=ctx.settings.ftp_timeout)
        try:
            ftp.login(tok.get("user") or "anonymous", tok.get("pass") or "")
            with open(request.destination, "wb") as f:
                reply = ftp.retrbinary(f"RETR {request.path}", f.write)
        finally:
            try:
                ftp.quit()
            except (OSError, EOFError, ftplib.Error):
                ftp.close()
        return reply_code(reply)

    def fetch(self, request: RetrievalRequest, ctx: FetchContext) -> Outcome:
        shown = request.display_url
        logger.info("Downloading %s to %s", shown, request.destination)
        try:
            code = self._get(request, ctx)
        except ftplib.Error as e:
            # error_perm / error_temp carry the server reply as their message
            logger.error("FTP transfer of %s failed: %s", shown, e)
            code = reply_code(str(e))
        except (OSError, EOFError) as e:
            logger.error("FTP connection for %s failed: %s", shown, e)
            code = 0
        except ValueError as e:
            logger.error("Invalid FTP port for %s: %s", shown, e)
            code = 0

        if 200 <= code < 300 and file_size(request.destination) > 0:
            return ctx.diagnostics.succeed()

        logger.error("Can't find URL: %s (code %s)", shown, code)
        if file_size(request.destination) == 0:
            os.unlink(request.destination)
        ctx.diagnostics.record(
            _("Cannot find URL '%(url)s' via protocol FTP. Server returned code %(code)s.")
            % {"url": shown, "code": code},
            ErrorKind.TRANSFER_FAILURE,
        )
        return ctx.diagnostics.fail()
