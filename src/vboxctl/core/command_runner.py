"""
VBoxManage process execution.

``VBoxManageRunner`` is the production command executor: it locates the
VBoxManage binary and runs it synchronously. Anything with a compatible
``run(args) -> CommandResult`` method can stand in for it (see
``vboxctl.testing``).
"""

import os
import platform
import shutil
import subprocess  # nosec B404 # Required for system command execution
from dataclasses import dataclass
from typing import List, Optional, Sequence

from vboxctl.core.exceptions import (
    VBoxManageError,
    VBoxManageNotFoundError,
    VBoxManageTimeoutError,
)
from vboxctl.utils.verbosity_logger import get_logger

VBOXMANAGE = "VBoxManage"

# Environment variables set by the VirtualBox installers
INSTALL_PATH_VARIABLES = ("VBOX_INSTALL_PATH", "VBOX_MSI_INSTALL_PATH")


@dataclass
class CommandResult:
    """Result from a VBoxManage invocation, mimics subprocess.CompletedProcess."""

    returncode: int
    stdout: str
    stderr: str


def _executable_name() -> str:
    if platform.system().lower() == "windows":
        return VBOXMANAGE + ".exe"
    return VBOXMANAGE


def _install_dir_candidates() -> List[str]:
    """VBoxManage paths below the installer-provided directories."""
    name = _executable_name()
    candidates = []
    for variable in INSTALL_PATH_VARIABLES:
        for directory in os.environ.get(variable, "").split(os.pathsep):
            if directory:
                candidates.append(os.path.join(directory, name))
    return candidates


def _program_files_candidates() -> List[str]:
    """Default install locations on Windows."""
    if platform.system().lower() != "windows":
        return []
    return [
        os.path.join(os.environ.get(variable, ""), "Oracle", "VirtualBox", VBOXMANAGE + ".exe")
        for variable in ("ProgramFiles", "ProgramFiles(x86)")
    ]


def find_vboxmanage(config=None) -> str:
    """
    Locate the VBoxManage executable.

    Search order: configured ``vboxmanage.path``, the installer environment
    variables, ``PATH``, then the Windows Program Files locations.

    Raises:
        VBoxManageNotFoundError: If no executable is found
    """
    searched = []

    configured = config.get_vboxmanage_path() if config else None
    if configured:
        if os.path.exists(configured):
            return configured
        searched.append(configured)

    for path in _install_dir_candidates():
        if os.path.exists(path):
            return path
        searched.append(path)

    on_path = shutil.which(VBOXMANAGE)
    if on_path:
        return on_path
    searched.append(VBOXMANAGE)

    for path in _program_files_candidates():
        if os.path.exists(path):
            return path
        searched.append(path)

    raise VBoxManageNotFoundError(searched)


def check_result(args: Sequence[str], result: CommandResult) -> CommandResult:
    """Raise VBoxManageError for a non-zero exit status."""
    if result.returncode != 0:
        raise VBoxManageError(list(args), result.returncode, result.stderr)
    return result


class VBoxManageRunner:
    """Runs VBoxManage commands as blocking subprocesses."""

    def __init__(
        self,
        path: Optional[str] = None,
        timeout: Optional[float] = None,
        config=None,
        logger=None,
    ):
        self.config = config
        self.logger = logger or get_logger(__name__, config)
        self._path = path
        if timeout is None and config:
            timeout = config.get_command_timeout()
        self.timeout = timeout

    @property
    def path(self) -> str:
        """Resolved VBoxManage path, located on first use."""
        if self._path is None:
            self._path = find_vboxmanage(self.config)
            self.logger.debug("Using VBoxManage at %s", self._path)
        return self._path

    def run(self, args: Sequence[str]) -> CommandResult:
        """
        Run VBoxManage with the given arguments.

        Args:
            args: Arguments following the executable, e.g. ["list", "vms"]

        Returns:
            CommandResult with returncode, stdout, stderr

        Raises:
            VBoxManageNotFoundError: If VBoxManage cannot be located or executed
            VBoxManageTimeoutError: If the command exceeds the timeout
        """
        command = [self.path, *args]
        self.logger.debug("Running: %s", " ".join(command))

        creationflags = (
            subprocess.CREATE_NO_WINDOW
            if hasattr(subprocess, "CREATE_NO_WINDOW")
            and platform.system().lower() == "windows"
            else 0
        )
        try:
            completed = subprocess.run(  # nosec B603
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
                creationflags=creationflags,
            )
        except subprocess.TimeoutExpired as error:
            raise VBoxManageTimeoutError(list(args), self.timeout) from error
        except OSError as error:
            # Missing or non-executable binary
            raise VBoxManageNotFoundError([command[0]]) from error

        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def get_version(self) -> str:
        """Return the VBoxManage version string."""
        args = ["--version"]
        return check_result(args, self.run(args)).stdout.strip()
