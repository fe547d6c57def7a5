from __future__ import annotations

import logging
import os
import time
from typing import Callable, Dict, Mapping, Optional, Tuple

from .backends import Backend, FetchContext, default_backends
from .lib.command import Runner, run_cmd
from .lib.devices import DeviceEnumerator
from .lib.mounts import MountManager, scoped_mount_path
from .outcome import ErrorKind, Outcome, _
from .request import RetrievalRequest
from .settings import FetchSettings

logger = logging.getLogger(__name__)


class Retriever:
    """Fetches files by dispatching on the locator scheme.

    One instance may serve many retrievals, one after the other; every
    retrieval gets its own diagnostics and mount bookkeeping.
    """

    def __init__(
        self,
        settings: Optional[FetchSettings] = None,
        *,
        runner: Runner = run_cmd,
        sleep: Callable[[float], None] = time.sleep,
        backends: Optional[Mapping[str, Backend]] = None,
    ):
        self.settings = settings or FetchSettings()
        self.runner = runner
        self.sleep = sleep
        self.backends: Dict[str, Backend] = dict(backends) if backends is not None else default_backends()

    def context_for(self, request: RetrievalRequest) -> FetchContext:
        s = self.settings
        mounts = MountManager(
            scoped_mount_path(s.scratch_dir, request.root_dir),
            mount_table=s.mount_table,
            runner=self.runner,
            sleep=self.sleep,
        )
        return FetchContext(
            settings=s,
            mounts=mounts,
            devices=DeviceEnumerator(dev_root=s.dev_root, runner=self.runner),
            runner=self.runner,
        )

    def retrieve(self, request: RetrievalRequest) -> Outcome:
        logger.info(
            "Scheme:%s Host:%s Path:%s Localfile:%s",
            request.scheme,
            request.host,
            request.path,
            request.destination,
        )

        backend = self.backends.get(request.scheme)
        if backend is None:
            logger.error("Protocol not supported: %s", request.scheme)
            return Outcome.failed(_("Unknown protocol %(scheme)s") % {"scheme": request.scheme}, ErrorKind.UNKNOWN_PROTOCOL)

        if request.scheme != "floppy":
            parent = os.path.dirname(request.destination)
            try:
                if parent:
                    os.makedirs(parent, exist_ok=True)
            except OSError as e:
                logger.error("Cannot create %s: %s", parent, e)
                return Outcome.failed(
                    _("Cannot create directory for %(dest)s") % {"dest": request.destination},
                    ErrorKind.TRANSFER_FAILURE,
                )

        ctx = self.context_for(request)

        try:
            outcome = backend.fetch(request, ctx)
        finally:
            # A backend must release what it mounted; this only catches bugs.
            if ctx.mounts.active is not None and not ctx.mounts.active.pre_existing:
                logger.error("Backend for %s left %s mounted", request.scheme, ctx.mounts.active.local_path)
                ctx.mounts.release(ctx.mounts.active)

        if outcome.diagnostic:
            logger.warning("GET error: %s", outcome.diagnostic.strip())
        return outcome


def retrieve(
    scheme: str,
    host: str,
    path: str,
    destination: str,
    extra_tokens: Optional[Mapping[str, str]] = None,
    root_dir: str = "",
    *,
    settings: Optional[FetchSettings] = None,
) -> Tuple[bool, str]:
    """Fetch one file; returns ``(success, diagnostic)``."""

    request = RetrievalRequest.create(scheme, host, path, destination, extra_tokens, root_dir)
    return Retriever(settings).retrieve(request).as_tuple()
