"""
Unit tests for vboxctl.core.command_runner.

Tests cover:
- VBoxManage discovery order
- Subprocess invocation and result mapping
- Timeout handling
- check_result error conversion
"""

# pylint: disable=redefined-outer-name,protected-access

import os
import subprocess
from unittest.mock import Mock, patch

import pytest

from vboxctl.core.command_runner import (
    CommandResult,
    VBoxManageRunner,
    check_result,
    find_vboxmanage,
)
from vboxctl.core.exceptions import (
    VBoxError,
    VBoxManageError,
    VBoxManageNotFoundError,
    VBoxManageTimeoutError,
)


@pytest.fixture
def runner(logger):
    """A runner with a fixed executable path."""
    return VBoxManageRunner(path="/usr/bin/VBoxManage", timeout=15, logger=logger)


class TestFindVBoxManage:
    """Tests for find_vboxmanage."""

    def test_configured_path_first(self):
        """Test that an existing configured path wins."""
        config = Mock()
        config.get_vboxmanage_path.return_value = "/opt/vbox/VBoxManage"

        with patch("os.path.exists", return_value=True), patch(
            "shutil.which", return_value="/usr/bin/VBoxManage"
        ):
            assert find_vboxmanage(config) == "/opt/vbox/VBoxManage"

    def test_install_path_variable(self):
        """Test the VBOX_INSTALL_PATH directory."""
        expected = os.path.join("/opt/VirtualBox", "VBoxManage")
        with patch.dict(os.environ, {"VBOX_INSTALL_PATH": "/opt/VirtualBox"}), patch(
            "platform.system", return_value="Linux"
        ), patch("os.path.exists", side_effect=lambda p: p == expected), patch(
            "shutil.which", return_value="/usr/bin/VBoxManage"
        ):
            assert find_vboxmanage() == expected

    def test_path_lookup(self):
        """Test falling back to PATH."""
        with patch.dict(os.environ, {}, clear=True), patch(
            "platform.system", return_value="Linux"
        ), patch("shutil.which", return_value="/usr/local/bin/VBoxManage"):
            assert find_vboxmanage() == "/usr/local/bin/VBoxManage"

    def test_missing_configured_path_falls_through(self):
        """Test that a configured path that does not exist is skipped."""
        config = Mock()
        config.get_vboxmanage_path.return_value = "/nowhere/VBoxManage"

        with patch.dict(os.environ, {}, clear=True), patch(
            "platform.system", return_value="Linux"
        ), patch("os.path.exists", return_value=False), patch(
            "shutil.which", return_value="/usr/bin/VBoxManage"
        ):
            assert find_vboxmanage(config) == "/usr/bin/VBoxManage"

    def test_windows_program_files(self):
        """Test the Windows default install location."""
        expected = os.path.join(
            "C:\\Program Files", "Oracle", "VirtualBox", "VBoxManage.exe"
        )
        with patch.dict(
            os.environ, {"ProgramFiles": "C:\\Program Files"}, clear=True
        ), patch("platform.system", return_value="Windows"), patch(
            "shutil.which", return_value=None
        ), patch(
            "os.path.exists", side_effect=lambda p: p == expected
        ):
            assert find_vboxmanage() == expected

    def test_not_found(self):
        """Test that a missing executable raises with the searched paths."""
        with patch.dict(os.environ, {}, clear=True), patch(
            "platform.system", return_value="Linux"
        ), patch("shutil.which", return_value=None):
            with pytest.raises(VBoxManageNotFoundError) as exc_info:
                find_vboxmanage()

        assert "VBoxManage" in exc_info.value.searched


class TestVBoxManageRunner:
    """Tests for VBoxManageRunner."""

    def test_run_success(self, runner):
        """Test that output is captured into a CommandResult."""
        completed = Mock(returncode=0, stdout='"vm" {1234}\n', stderr="")

        with patch("subprocess.run", return_value=completed) as mock_run:
            result = runner.run(["list", "vms"])

        assert result == CommandResult(0, '"vm" {1234}\n', "")
        args, kwargs = mock_run.call_args
        assert args[0] == ["/usr/bin/VBoxManage", "list", "vms"]
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True
        assert kwargs["timeout"] == 15
        assert kwargs["check"] is False

    def test_run_failure_is_returned_not_raised(self, runner):
        """Test that a non-zero exit is reported in the result."""
        completed = Mock(returncode=1, stdout="", stderr="VBoxManage: error: x\n")

        with patch("subprocess.run", return_value=completed):
            result = runner.run(["showvminfo", "x"])

        assert result.returncode == 1
        assert result.stderr == "VBoxManage: error: x\n"

    def test_run_none_output_normalized(self, runner):
        """Test that missing streams become empty strings."""
        completed = Mock(returncode=0, stdout=None, stderr=None)

        with patch("subprocess.run", return_value=completed):
            result = runner.run(["list", "vms"])

        assert result.stdout == ""
        assert result.stderr == ""

    def test_run_timeout(self, runner):
        """Test that a hung VBoxManage raises VBoxManageTimeoutError."""
        with patch(
            "subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="VBoxManage", timeout=15),
        ):
            with pytest.raises(VBoxManageTimeoutError) as exc_info:
                runner.run(["controlvm", "vm", "poweroff"])

        assert exc_info.value.timeout == 15
        assert exc_info.value.command_args == ["controlvm", "vm", "poweroff"]

    def test_path_resolved_lazily(self, logger):
        """Test that discovery happens on first use and is cached."""
        runner = VBoxManageRunner(logger=logger)

        with patch(
            "vboxctl.core.command_runner.find_vboxmanage",
            return_value="/usr/bin/VBoxManage",
        ) as mock_find:
            assert runner.path == "/usr/bin/VBoxManage"
            assert runner.path == "/usr/bin/VBoxManage"

        mock_find.assert_called_once()

    def test_timeout_from_config(self, logger):
        """Test that the configured timeout is used."""
        config = Mock()
        config.get_command_timeout.return_value = 90.0

        runner = VBoxManageRunner(path="/usr/bin/VBoxManage", config=config, logger=logger)

        assert runner.timeout == 90.0

    def test_no_timeout_by_default(self, logger):
        """Test that long commands such as savestate are never killed by default."""
        runner = VBoxManageRunner(path="/usr/bin/VBoxManage", logger=logger)
        completed = Mock(returncode=0, stdout="", stderr="")

        with patch("subprocess.run", return_value=completed) as mock_run:
            runner.run(["controlvm", "vm1", "savestate"])

        assert runner.timeout is None
        assert mock_run.call_args[1]["timeout"] is None

    def test_no_timeout_from_default_config(self, logger):
        """Test that an unset vboxmanage.timeout means no limit."""
        config = Mock()
        config.get_command_timeout.return_value = None

        runner = VBoxManageRunner(path="/usr/bin/VBoxManage", config=config, logger=logger)

        assert runner.timeout is None

    @pytest.mark.parametrize(
        "error", [FileNotFoundError(2, "No such file"), PermissionError(13, "denied")]
    )
    def test_unusable_executable(self, logger, error):
        """Test that a missing or non-executable path stays in the VBoxError family."""
        runner = VBoxManageRunner(path="/nowhere/VBoxManage", logger=logger)

        with patch("subprocess.run", side_effect=error):
            with pytest.raises(VBoxManageNotFoundError) as exc_info:
                runner.run(["list", "vms"])

        assert exc_info.value.searched == ["/nowhere/VBoxManage"]
        assert isinstance(exc_info.value, VBoxError)

    def test_get_version(self, runner):
        """Test version query."""
        completed = Mock(returncode=0, stdout="7.0.14r161095\n", stderr="")

        with patch("subprocess.run", return_value=completed):
            assert runner.get_version() == "7.0.14r161095"


class TestCheckResult:
    """Tests for check_result."""

    def test_success_passthrough(self):
        """Test that a zero exit returns the result."""
        result = CommandResult(0, "ok", "")
        assert check_result(["list", "vms"], result) is result

    def test_failure_raises_with_stderr(self):
        """Test that stderr is kept verbatim on the error."""
        result = CommandResult(2, "", "VBoxManage: error: boom\n")

        with pytest.raises(VBoxManageError) as exc_info:
            check_result(("startvm", "vm"), result)

        assert exc_info.value.returncode == 2
        assert exc_info.value.stderr == "VBoxManage: error: boom\n"
        assert exc_info.value.command_args == ["startvm", "vm"]
        assert "boom" in str(exc_info.value)
