from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict
from urllib.parse import urlsplit

from .env import PATHS

logger = logging.getLogger(__name__)

_DEVICES = re.compile(r"devices=(.*)$")

# Repository URL schemes meaning "installed from optical media".
_OPTICAL_SCHEMES = {"cd", "dvd", "iso"}


def parse_install_inf(text: str) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or ":" not in line:
            continue
        key, _, value = line.partition(":")
        values[key.strip()] = value.strip()
    return values


@dataclass(frozen=True)
class InstallMedia:
    """What the installer booted from, as recorded in install.inf."""

    repo_url: str = ""
    boot: str = ""
    boot_device: str = ""

    @classmethod
    def from_values(cls, values: Dict[str, str]) -> "InstallMedia":
        repo_url = values.get("ZyppRepoURL") or values.get("RepoURL") or ""
        scheme = urlsplit(repo_url).scheme.lower() if repo_url else ""
        boot = "cd" if scheme in _OPTICAL_SCHEMES else scheme
        m = _DEVICES.search(repo_url)
        return cls(repo_url=repo_url, boot=boot, boot_device=(m.group(1) if m else ""))

    @classmethod
    def load(cls, path: str = PATHS.install_inf) -> "InstallMedia":
        p = Path(path)
        if not p.exists():
            logger.info("No install metadata at %s", path)
            return cls()
        media = cls.from_values(parse_install_inf(p.read_text(encoding="utf-8", errors="replace")))
        logger.info("Install media: boot=%s device=%s", media.boot or "-", media.boot_device or "-")
        return media
