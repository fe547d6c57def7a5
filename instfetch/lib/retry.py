from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-delay retry: at most ``max_attempts`` tries, ``delay_s`` apart.

    There is no backoff; the pause only exists to give slow devices (optical
    drives spinning up) time to become ready.
    """

    max_attempts: int = 1
    delay_s: float = 0.0

    def run(
        self,
        attempt: Callable[[], bool],
        *,
        what: str = "operation",
        sleep: Callable[[float], None] = time.sleep,
    ) -> bool:
        """Call ``attempt`` until it returns True or attempts are exhausted."""

        tries = max(1, self.max_attempts)
        for n in range(1, tries + 1):
            if attempt():
                if n > 1:
                    logger.info("%s succeeded on attempt %d/%d", what, n, tries)
                return True
            logger.warning("%s failed (attempt %d/%d)", what, n, tries)
            if n < tries and self.delay_s > 0:
                sleep(self.delay_s)
        logger.error("%s failed after %d attempts", what, tries)
        return False

