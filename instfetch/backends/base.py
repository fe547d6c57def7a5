from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Tuple

from ..lib.command import Runner, run_cmd
from ..lib.devices import DeviceEnumerator
from ..lib.mounts import MountManager
from ..outcome import Diagnostics, Outcome
from ..request import RetrievalRequest
from ..settings import FetchSettings


@dataclass
class FetchContext:
    """Everything a backend may touch during one retrieval."""

    settings: FetchSettings
    mounts: MountManager
    devices: DeviceEnumerator
    runner: Runner = run_cmd
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


class Backend(Protocol):
    """Fetches one file for the schemes it declares."""

    schemes: Tuple[str, ...]

    def fetch(self, request: RetrievalRequest, ctx: FetchContext) -> Outcome:
        ...
