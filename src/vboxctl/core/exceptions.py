"""VBoxManage-related exception classes."""

from typing import List, Optional

from vboxctl.i18n import _


class VBoxError(Exception):
    """Base exception for vboxctl operations."""


class VBoxManageError(VBoxError):
    """VBoxManage exited with a non-zero status."""

    def __init__(self, args: List[str], returncode: int, stderr: str = ""):
        self.command_args = list(args)
        self.returncode = returncode
        self.stderr = stderr
        command = " ".join(self.command_args)
        super().__init__(
            _("VBoxManage %s failed with exit status %d: %s")
            % (command, returncode, stderr.strip())
        )


class VBoxManageNotFoundError(VBoxError):
    """The VBoxManage executable could not be located."""

    def __init__(self, searched: Optional[List[str]] = None):
        self.searched = searched or []
        super().__init__(_("VBoxManage executable not found"))


class VBoxManageTimeoutError(VBoxError):
    """VBoxManage did not finish within the configured timeout."""

    def __init__(self, args: List[str], timeout: float):
        self.command_args = list(args)
        self.timeout = timeout
        super().__init__(
            _("VBoxManage %s timed out after %s seconds")
            % (" ".join(self.command_args), timeout)
        )


class MachineNotFoundError(VBoxError):
    """VirtualBox has no registered machine with this name or UUID."""

    def __init__(self, machine_id: str, stderr: str = ""):
        self.machine_id = machine_id
        self.stderr = stderr
        super().__init__(_("Machine does not exist: %s") % machine_id)


class MachineExistsError(VBoxError):
    """A machine with this name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(_("Machine already exists: %s") % name)


class MachineInfoParseError(VBoxError):
    """A numeric field in showvminfo output could not be parsed."""

    def __init__(self, key: str, value: str):
        self.key = key
        self.value = value
        super().__init__(
            _("Invalid value for %s in machine info: %r") % (key, value)
        )


class EmptyIdentifierError(VBoxError, ValueError):
    """Neither a name nor a UUID was given for a machine."""


class InvalidSettingError(VBoxError, ValueError):
    """A machine setting is outside the values VBoxManage accepts."""


class MachineTimeoutError(VBoxError):
    """A machine did not reach the expected state in time."""

    def __init__(self, machine_id: str, expected_state: str, attempts: int):
        self.machine_id = machine_id
        self.expected_state = expected_state
        self.attempts = attempts
        super().__init__(
            _("Machine %s did not reach state %s after %d attempts")
            % (machine_id, expected_state, attempts)
        )
