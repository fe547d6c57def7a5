from __future__ import annotations

import enum
import gettext
import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

_ = gettext.translation("instfetch", fallback=True).gettext


class ErrorKind(str, enum.Enum):
    UNKNOWN_PROTOCOL = "unknown_protocol"
    MOUNT_FAILURE = "mount_failure"
    TRANSFER_FAILURE = "transfer_failure"
    NOT_FOUND = "not_found"
    UNSUPPORTED_SCHEME = "unsupported_scheme"


@dataclass(frozen=True)
class Outcome:
    success: bool
    diagnostic: str = ""
    error: Optional[ErrorKind] = None

    @classmethod
    def ok(cls) -> "Outcome":
        return cls(success=True)

    @classmethod
    def failed(cls, diagnostic: str, error: ErrorKind) -> "Outcome":
        return cls(success=False, diagnostic=diagnostic, error=error)

    def as_tuple(self) -> tuple[bool, str]:
        return self.success, self.diagnostic


class Diagnostics:
    """Collects the human-readable story of one retrieval.

    ``append`` keeps earlier messages (multi-step fallbacks), ``record``
    replaces them (last failure wins). ``succeed`` drops everything, logging
    what it drops so operators can still see the superseded attempts.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        self.kind: Optional[ErrorKind] = None

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def append(self, message: str, kind: ErrorKind) -> None:
        self._parts.append(message)
        self.kind = kind

    def record(self, message: str, kind: ErrorKind) -> None:
        self._parts = [message]
        self.kind = kind

    def clear(self) -> None:
        if self._parts:
            logger.warning("Superseded by later success: %s", self.text.strip())
        self._parts = []
        self.kind = None

    def succeed(self) -> Outcome:
        self.clear()
        return Outcome.ok()

    def fail(self, kind: Optional[ErrorKind] = None) -> Outcome:
        kind = kind or self.kind or ErrorKind.TRANSFER_FAILURE
        return Outcome.failed(self.text or _("Retrieval failed."), kind)
