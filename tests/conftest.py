"""
Pytest configuration and shared fixtures for vboxctl tests.
"""

import logging
import os
import tempfile
from unittest.mock import Mock

import pytest

from vboxctl.core.command_runner import CommandResult
from vboxctl.core.config import ConfigManager
from vboxctl.testing import FailingVBoxManage, FakeVBoxManage

WEB01_INFO = """name="web01"
groups="/"
ostype="Ubuntu (64-bit)"
UUID="1234"
CfgFile="/vms/web01/web01.vbox"
SnapFldr="/vms/web01/Snapshots"
memory="2048"
vram="16"
cpus="2"
boot1="disk"
boot2="dvd"
boot3="none"
boot4="none"
VMState="running"
VMStateChangeTime="2026-10-01T08:15:42.000000000"
"storagecontrollername0"="SATA"
"SATA-0-0"="/vms/web01/web01.vdi"
"""


@pytest.fixture
def logger():
    """Create a logger for testing."""
    return logging.getLogger("test")


@pytest.fixture
def fake_vbox():
    """An empty in-memory VBoxManage."""
    return FakeVBoxManage()


@pytest.fixture
def failing_vbox():
    """A VBoxManage whose every call fails."""
    return FailingVBoxManage()


@pytest.fixture
def stop_config():
    """Config with a zero poll interval and a small attempt bound."""
    config = Mock(spec=ConfigManager)
    config.get_stop_poll_interval.return_value = 0
    config.get_stop_max_attempts.return_value = 5
    config.get_log_levels.return_value = "DEBUG|INFO|WARNING|ERROR|CRITICAL"
    return config


@pytest.fixture
def mock_runner():
    """A runner Mock that succeeds with empty output."""
    runner = Mock()
    runner.run.return_value = CommandResult(returncode=0, stdout="", stderr="")
    return runner


@pytest.fixture
def config_file():
    """Write YAML to a temporary file and yield a factory for its path."""
    paths = []

    def _write(content):
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".yaml", delete=False, encoding="utf-8"
        ) as file:
            file.write(content)
            paths.append(file.name)
            return file.name

    yield _write

    for path in paths:
        if os.path.exists(path):
            os.unlink(path)


@pytest.fixture
def web01_info():
    """showvminfo --machinereadable output for a running machine."""
    return WEB01_INFO
