from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .lib.env import PATHS
from .lib.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchSettings:
    scratch_dir: str = PATHS.scratch_dir
    install_source_dir: str = PATHS.install_source_dir
    install_inf: str = PATHS.install_inf
    client_cert: str = PATHS.client_cert
    client_key: str = PATHS.client_key
    mount_table: str = PATHS.mount_table
    dev_root: str = PATHS.dev_root
    # Early-boot networks rarely have a usable CA bundle.
    ssl_verify: bool = False
    http_timeout: float = 60.0
    ftp_timeout: float = 60.0
    tftp_timeout: float = 120.0
    optical_mount_attempts: int = 10
    optical_mount_delay: float = 3.0

    @property
    def optical_retry(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.optical_mount_attempts, delay_s=self.optical_mount_delay)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def _read_raw(p: Path) -> Dict[str, Any]:
    fmt = _detect_format(p)
    if fmt in {"yaml", "yml"}:
        try:
            import yaml  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "YAML settings requested but PyYAML is not available. "
                "Use JSON settings or add PyYAML to the live environment."
            ) from e
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    else:
        data = json.loads(p.read_text(encoding="utf-8"))

    if not isinstance(data, dict):
        raise ValueError(f"Settings file must be an object/dict, got {type(data)}")
    return data


def ensure_defaults(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Fill missing keys with defaults (without overriding user values)."""

    for f in fields(FetchSettings):
        raw.setdefault(f.name, f.default)
    return raw


def settings_from_dict(raw: Dict[str, Any]) -> FetchSettings:
    known = {f.name: f for f in fields(FetchSettings)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))

    values: Dict[str, Any] = {}
    for name, value in ensure_defaults(dict(raw)).items():
        f = known.get(name)
        if f is None:
            continue
        default = f.default
        # Coerce to the default's type so "3" in a YAML file still works.
        if isinstance(default, bool):
            if isinstance(value, str):
                value = value.strip().lower() not in ("0", "false", "no", "off", "")
            else:
                value = bool(value)
        elif isinstance(default, int):
            value = int(value)
        elif isinstance(default, float):
            value = float(value)
        else:
            value = str(value)
        values[name] = value

    if values["optical_mount_attempts"] < 1:
        raise ValueError("optical_mount_attempts must be >= 1")
    return FetchSettings(**values)


def load_settings(path: Optional[str]) -> FetchSettings:
    """Load settings from JSON or YAML; a missing file means all defaults."""

    if not path:
        return FetchSettings()
    p = Path(path)
    if not p.exists():
        logger.info("No settings file at %s, using defaults", path)
        return FetchSettings()
    settings = settings_from_dict(_read_raw(p))
    logger.info("Settings loaded from %s", path)
    return settings
