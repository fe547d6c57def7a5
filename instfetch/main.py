from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from .lib.env import PATHS
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .orchestrator import Retriever
from .outcome import Outcome
from .request import RetrievalRequest
from .settings import load_settings

logger = logging.getLogger(__name__)

SETTINGS_ENV = "INSTFETCH_SETTINGS"


def run(
    url: str,
    destination: str,
    *,
    settings_path: Optional[str] = None,
    log_path: str = DEFAULT_LOG_PATH,
    root_dir: str = "",
    verbose: bool = False,
    quiet: bool = False,
) -> Outcome:
    """Fetch ``url`` into ``destination`` with logging and settings set up."""

    # -v also shows progress on the terminal; -q leaves it to the log file.
    console_level = None if quiet else (logging.INFO if verbose else logging.WARNING)
    configure_logging(
        log_path=log_path,
        level=logging.DEBUG if verbose else logging.INFO,
        console_level=console_level,
    )
    settings = load_settings(settings_path)
    request = RetrievalRequest.from_url(url, destination, root_dir=root_dir)

    try:
        return Retriever(settings).retrieve(request)
    except Exception:
        logger.exception("Fetching %s failed unexpectedly", request.display_url)
        raise


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="instfetch", description="Fetch one file from a URL during system setup.")
    p.add_argument("url", help="Source, e.g. nfs://server/path/file, usb:///file, http://host/file")
    p.add_argument("destination", help="Local file to write")
    p.add_argument(
        "--settings",
        default=os.environ.get(SETTINGS_ENV, PATHS.settings_default),
        help=f"Settings file (json|yaml); defaults to ${SETTINGS_ENV} or {PATHS.settings_default}",
    )
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to log file")
    p.add_argument("--root-dir", default="", help="Root of the system being installed")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging (command output)")
    p.add_argument("-q", "--quiet", action="store_true", help="Only the log file, nothing on the terminal")

    args = p.parse_args(argv)

    outcome = run(
        args.url,
        args.destination,
        settings_path=args.settings,
        log_path=args.log,
        root_dir=args.root_dir,
        verbose=args.verbose,
        quiet=args.quiet,
    )
    if not outcome.success:
        print(outcome.diagnostic.strip(), file=sys.stderr)
        return 1
    return 0
