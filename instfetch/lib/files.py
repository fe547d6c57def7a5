from __future__ import annotations

import logging
import os
import shutil

from .command import Runner, run_cmd

logger = logging.getLogger(__name__)


def file_size(path: str) -> int:
    """Size of ``path`` in bytes, or -1 when it cannot be stat'ed."""

    try:
        return os.path.getsize(path)
    except OSError:
        return -1


def copy_local_file(src: str, dst: str) -> bool:
    """In-process copy; filesystem errors are logged and reported as False."""

    logger.info("Copying %s to %s", src, dst)
    try:
        shutil.copyfile(src, dst)
    except OSError as e:
        logger.warning("Could not copy %s to %s: %r", src, dst, e)
        return False
    return True


def copy_with_cp(src: str, dst: str, *, runner: Runner = run_cmd) -> bool:
    """Copy through the system ``cp``, for files on freshly mounted trees."""

    r = runner(["cp", src, dst], check=False)
    return r.ok
