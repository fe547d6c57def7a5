from typing import Dict

from .base import Backend, FetchContext
from .device import DeviceBackend
from .floppy import FloppyBackend
from .ftp import FtpBackend
from .http import HttpBackend
from .local import FileBackend
from .share import CifsBackend, NfsBackend
from .tftp import TftpBackend

ALL_BACKENDS = (
    HttpBackend,
    FtpBackend,
    TftpBackend,
    FileBackend,
    NfsBackend,
    CifsBackend,
    DeviceBackend,
    FloppyBackend,
)


def default_backends() -> Dict[str, Backend]:
    """Scheme -> backend instance for every supported scheme."""

    table: Dict[str, Backend] = {}
    for cls in ALL_BACKENDS:
        backend = cls()
        for scheme in backend.schemes:
            table[scheme] = backend
    return table


KNOWN_SCHEMES = frozenset(default_backends())

__all__ = [
    "Backend",
    "FetchContext",
    "CifsBackend",
    "DeviceBackend",
    "FileBackend",
    "FloppyBackend",
    "FtpBackend",
    "HttpBackend",
    "NfsBackend",
    "TftpBackend",
    "ALL_BACKENDS",
    "KNOWN_SCHEMES",
    "default_backends",
]
