"""Fetch a single file by URL during unattended system setup.

Supported schemes:
- http, https, ftp, tftp
- nfs, cifs (mounted on a scoped, temporary mount point)
- file (with fallback to the installation medium)
- device, usb (probing disks and partitions when none is named)
"""

from .orchestrator import Retriever, retrieve
from .outcome import ErrorKind, Outcome
from .request import RetrievalRequest

__all__ = ["ErrorKind", "Outcome", "RetrievalRequest", "Retriever", "retrieve"]
