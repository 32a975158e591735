import subprocess

import pytest

from stackinit.errors import MissingTool
from stackinit.services.toolchain import ToolchainService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeSubprocess:
    CalledProcessError = subprocess.CalledProcessError

    def __init__(self, missing=(), broken=()):
        self.missing = set(missing)
        self.broken = set(broken)
        self.probed = []

    def run(self, cmd, check=False, capture_output=False):
        self.probed.append(cmd)
        if cmd[0] in self.missing:
            raise FileNotFoundError(cmd[0])
        if cmd[0] in self.broken:
            raise subprocess.CalledProcessError(1, cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def test_require_all_probes_each_tool_once():
    fake = FakeSubprocess()
    service = ToolchainService(DummyLogger(), DummyConsole(), subprocess_module=fake)

    assert service.require_all(["az", "git", "az", "gh"]) == ["az", "git", "gh"]
    assert fake.probed == [["az", "--version"], ["git", "--version"], ["gh", "--version"]]


def test_missing_tool_names_install_url():
    service = ToolchainService(DummyLogger(), DummyConsole(), subprocess_module=FakeSubprocess(missing={"git"}))

    with pytest.raises(MissingTool, match="git-scm.com") as error:
        service.require_all(["az", "git", "gh"])

    assert error.value.tool == "git"


def test_failing_version_probe_counts_as_missing():
    service = ToolchainService(DummyLogger(), DummyConsole(), subprocess_module=FakeSubprocess(broken={"azd"}))

    assert service.is_available("azd") is False
    assert service.is_available("az") is True
