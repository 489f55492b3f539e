"""
Pytest fixtures and configuration for sysshim tests.
"""
import os
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sysshim.backends.subprocess_runner import SubprocessRunner
from sysshim.config import SysshimSettings
from sysshim.di import create_default_container, set_container
from sysshim.interfaces.process import ExecResult, ProcessRunner

HAS_POSIX_SHELL = os.name == "posix" and os.path.exists("/bin/sh")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def fresh_container(monkeypatch):
    """Give every test its own default container and a clean environment."""
    for name in list(os.environ):
        if name.startswith("SYSSHIM_"):
            monkeypatch.delenv(name)
    container = create_default_container()
    set_container(container)
    yield container
    set_container(None)


@pytest.fixture
def mock_runner(fresh_container):
    """Register a MagicMock runner that reports success for every command."""
    runner = MagicMock(spec=ProcessRunner)
    runner.execute.return_value = ExecResult(success=True, code=0)
    runner.run_captured.return_value = ExecResult(success=True, code=0, output="")
    fresh_container.register(ProcessRunner, instance=runner)
    yield runner


@pytest.fixture(params=["tri-value", "encoded"])
def shell_runner(request):
    """A real runner for each completion shape."""
    if not HAS_POSIX_SHELL:
        pytest.skip("requires a POSIX /bin/sh")
    return SubprocessRunner(settings=SysshimSettings(completion_mode=request.param))


# Markers for test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "posix: Tests that spawn /bin/sh and coreutils")
