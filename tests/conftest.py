"""Shared fixtures: a recording command runner and sandboxed settings."""

import json
import os
import shutil
from typing import Callable, List, Optional, Sequence

import pytest

from instfetch.lib.command import CmdResult
from instfetch.orchestrator import Retriever
from instfetch.settings import FetchSettings


class _Rule:
    def __init__(self, prefix, returncodes, stdout, effect):
        self.prefix = list(prefix)
        self.returncodes = list(returncodes)
        self.stdout = stdout
        self.effect = effect

    def matches(self, argv):
        return argv[: len(self.prefix)] == self.prefix

    def next_code(self):
        if len(self.returncodes) > 1:
            return self.returncodes.pop(0)
        return self.returncodes[0]


class FakeRunner:
    """Stands in for run_cmd: records every argv and scripts the results.

    Without a matching rule, ``mkdir -p`` and ``cp`` act on the real
    (temporary) filesystem, ``lsblk`` reports no disks and everything else
    succeeds.
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self.rules: List[_Rule] = []

    def on(
        self,
        prefix: Sequence[str],
        returncode=0,
        *,
        stdout: str = "",
        effect: Optional[Callable[[List[str]], None]] = None,
    ) -> "FakeRunner":
        codes = returncode if isinstance(returncode, (list, tuple)) else [returncode]
        self.rules.append(_Rule(prefix, codes, stdout, effect))
        return self

    def commands(self, name: str) -> List[List[str]]:
        return [c for c in self.calls if c and c[0] == name]

    def __call__(self, argv, *, check=True, env=None, timeout=None):
        argv = list(argv)
        self.calls.append(argv)
        for rule in self.rules:
            if rule.matches(argv):
                code = rule.next_code()
                if code == 0 and rule.effect:
                    rule.effect(argv)
                return CmdResult(argv=argv, returncode=code, stdout=rule.stdout, stderr="")
        return self._default(argv)

    def _default(self, argv):
        code, stdout = 0, ""
        if argv[:2] == ["mkdir", "-p"]:
            os.makedirs(argv[2], exist_ok=True)
        elif argv[0] == "cp":
            try:
                shutil.copyfile(argv[1], argv[2])
            except OSError:
                code = 1
        elif argv[0] == "lsblk":
            stdout = json.dumps({"blockdevices": []})
        return CmdResult(argv=argv, returncode=code, stdout=stdout, stderr="")


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def settings(tmp_path):
    (tmp_path / "dev").mkdir()
    (tmp_path / "source").mkdir()
    (tmp_path / "mounts").write_text("proc /proc proc rw 0 0\n")
    return FetchSettings(
        scratch_dir=str(tmp_path / "scratch"),
        install_source_dir=str(tmp_path / "source"),
        install_inf=str(tmp_path / "install.inf"),
        client_cert=str(tmp_path / "certs" / "client-cert.pem"),
        client_key=str(tmp_path / "certs" / "client-key.pem"),
        mount_table=str(tmp_path / "mounts"),
        dev_root=str(tmp_path / "dev"),
    )


@pytest.fixture
def scoped_mp(settings):
    return os.path.join(settings.scratch_dir, "tmp_mount")


@pytest.fixture
def retriever(settings, runner, sleeps):
    return Retriever(settings, runner=runner, sleep=sleeps.append)


@pytest.fixture
def dest(tmp_path):
    return str(tmp_path / "out" / "profile.xml")


@pytest.fixture
def write_file():
    def _write(path, content="<profile/>"):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            f.write(content)
        return str(path)

    return _write


class FakeResponse:
    """Streaming requests.Response stand-in."""

    def __init__(self, status_code, body=b""):
        self.status_code = status_code
        self.body = body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def iter_content(self, chunk_size=1):
        yield self.body


@pytest.fixture
def http_get(monkeypatch):
    """Replace requests.get; set ``.response`` or ``.error`` per test."""

    class _Get:
        def __init__(self):
            self.response = FakeResponse(200, b"<profile/>")
            self.error = None
            self.calls = []

        def __call__(self, url, **kwargs):
            self.calls.append((url, kwargs))
            if self.error is not None:
                raise self.error
            return self.response

    get = _Get()
    monkeypatch.setattr("instfetch.backends.http.requests.get", get)
    return get
