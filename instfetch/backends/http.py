from __future__ import annotations

import logging
import warnings
from typing import Optional, Tuple, Union

import requests
from urllib3.exceptions import InsecureRequestWarning

from ..lib.files import file_size
from ..outcome import ErrorKind, Outcome, _
from ..request import RetrievalRequest
from .base import FetchContext

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def client_cert(cert_path: str, key_path: str) -> Optional[Union[str, Tuple[str, str]]]:
    """Client certificate argument for requests, from whichever files are non-empty."""

    has_cert = file_size(cert_path) > 0
    has_key = file_size(key_path) > 0
    if has_cert and has_key:
        return (cert_path, key_path)
    if has_cert:
        # requests accepts a single PEM holding both cert and key.
        return cert_path
    if has_key:
        logger.warning("Client key %s present without certificate %s, ignoring it", key_path, cert_path)
    return None


class HttpBackend:
    schemes = ("http", "https")

    def _get(self, url: str, dest: str, ctx: FetchContext) -> int:
        s = ctx.settings
        cert = client_cert(s.client_cert, s.client_key) if url.startswith("https:") else None
        with warnings.catch_warnings():
            if not s.ssl_verify:
                warnings.simplefilter("ignore", InsecureRequestWarning)
            with requests.get(url, stream=True, timeout=s.http_timeout, verify=s.ssl_verify, cert=cert) as resp:
                if resp.status_code != 200:
                    return resp.status_code
                with open(dest, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                        f.write(chunk)
                return resp.status_code

    def fetch(self, request: RetrievalRequest, ctx: FetchContext) -> Outcome:
        url = request.build_url()
        shown = request.display_url
        logger.info("Downloading %s to %s", shown, request.destination)
        try:
            code = self._get(url, request.destination, ctx)
        except requests.RequestException as e:
            logger.error("HTTP request for %s failed: %s", shown, e)
            code = 0
        except OSError as e:
            logger.error("Cannot write %s: %s", request.destination, e)
            code = 0

        if code == 200:
            return ctx.diagnostics.succeed()

        logger.error("Can't find URL: %s (code %s)", shown, code)
        ctx.diagnostics.record(
            _("Cannot find URL '%(url)s' via protocol HTTP(S). Server returned code %(code)s.")
            % {"url": shown, "code": code},
            ErrorKind.TRANSFER_FAILURE,
        )
        return ctx.diagnostics.fail()
