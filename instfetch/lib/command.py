from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

# Exit status reported by shells when the executable cannot be found.
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    def __init__(self, result: CmdResult):
        super().__init__(f"Command failed ({result.returncode}): {fmt_argv(result.argv)}\n{result.stderr}")
        self.result = result


# Anything with run_cmd's signature; tests substitute a recording fake.
Runner = Callable[..., CmdResult]


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    timeout: Optional[float] = None,
) -> CmdResult:
    """Run an external tool from an explicit argument list.

    - Always logs the command, never goes through a shell.
    - A missing executable is reported as exit status 127 rather than raised,
      so callers only ever inspect ``returncode``.
    - A timeout is reported as a failed result as well.
    """

    argv_list = list(argv)
    logger.info("CMD %s", fmt_argv(argv_list))

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=dict(os.environ, **(env or {})),
            timeout=timeout,
        )
    except FileNotFoundError as e:
        logger.error("Executable not found: %s", argv_list[0])
        result = CmdResult(argv=argv_list, returncode=EXIT_NOT_FOUND, stdout="", stderr=str(e))
    except subprocess.TimeoutExpired:
        logger.error("Command timed out after %ss: %s", timeout, fmt_argv(argv_list))
        result = CmdResult(argv=argv_list, returncode=-1, stdout="", stderr="timed out")
    else:
        if p.stdout:
            logger.debug("STDOUT %s", p.stdout.strip())
        if p.stderr:
            logger.debug("STDERR %s", p.stderr.strip())
        result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)

    if check and not result.ok:
        raise CommandError(result)

    return result
