from __future__ import annotations

from ..outcome import ErrorKind, Outcome, _
from ..request import RetrievalRequest
from .base import FetchContext


class FloppyBackend:
    schemes = ("floppy",)

    def fetch(self, request: RetrievalRequest, ctx: FetchContext) -> Outcome:
        ctx.diagnostics.record(
            _("URLs starting with 'floppy:/' are no longer supported"),
            ErrorKind.UNSUPPORTED_SCHEME,
        )
        return ctx.diagnostics.fail()
