from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import unquote, urlsplit

_SLASHES = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Collapse repeated slashes (``a//b`` -> ``a/b``)."""

    return _SLASHES.sub("/", path)


@dataclass(frozen=True)
class RetrievalRequest:
    """One file to fetch: where from (scheme/host/path) and where to."""

    scheme: str
    host: str
    path: str
    destination: str
    extra_tokens: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    root_dir: str = ""

    @classmethod
    def create(
        cls,
        scheme: str,
        host: str,
        path: str,
        destination: str,
        extra_tokens: Optional[Mapping[str, str]] = None,
        root_dir: str = "",
    ) -> "RetrievalRequest":
        return cls(
            scheme=scheme or "",
            host=host or "",
            path=normalize_path(path or ""),
            destination=destination,
            extra_tokens=MappingProxyType(dict(extra_tokens or {})),
            root_dir=root_dir or "",
        )

    @classmethod
    def from_url(cls, url: str, destination: str, *, root_dir: str = "") -> "RetrievalRequest":
        parts = urlsplit(url)
        userinfo, _, hostport = parts.netloc.rpartition("@")
        host, port = hostport, ""
        if ":" in hostport and not hostport.endswith("]"):
            h, _, p = hostport.rpartition(":")
            if p.isdigit():
                host, port = h, p

        tokens = {}
        if userinfo:
            user, _, password = userinfo.partition(":")
            tokens["user"] = unquote(user)
            if password:
                tokens["pass"] = unquote(password)
        if port:
            tokens["port"] = port
        if parts.query:
            tokens["query"] = parts.query
        if parts.fragment:
            tokens["fragment"] = parts.fragment

        return cls.create(parts.scheme, host, unquote(parts.path), destination, tokens, root_dir)

    @property
    def dirname(self) -> str:
        head, _, _ = self.path.rpartition("/")
        return head or "/"

    @property
    def basename(self) -> str:
        return self.path.rpartition("/")[2]

    def build_url(self, *, mask_password: bool = False) -> str:
        """Rebuild the full URL from scheme, host, path and the extra tokens."""

        tok = self.extra_tokens
        auth = ""
        if tok.get("user"):
            auth = tok["user"]
            if tok.get("pass"):
                auth += ":" + ("***" if mask_password else tok["pass"])
            auth += "@"
        netloc = auth + self.host
        if tok.get("port"):
            netloc += ":" + tok["port"]

        path = self.path
        if path and not path.startswith("/"):
            path = "/" + path
        url = f"{self.scheme}://{netloc}{path}"
        if tok.get("query"):
            url += "?" + tok["query"]
        if tok.get("fragment"):
            url += "#" + tok["fragment"]
        return url

    @property
    def display_url(self) -> str:
        return self.build_url(mask_password=True)
