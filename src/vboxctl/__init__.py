"""
vboxctl - control VirtualBox machines through VBoxManage.
"""

from vboxctl.core.command_runner import CommandResult, VBoxManageRunner
from vboxctl.core.config import ConfigManager
from vboxctl.core.setup import configure
from vboxctl.core.exceptions import (
    EmptyIdentifierError,
    InvalidSettingError,
    MachineExistsError,
    MachineInfoParseError,
    MachineNotFoundError,
    MachineTimeoutError,
    VBoxError,
    VBoxManageError,
    VBoxManageNotFoundError,
    VBoxManageTimeoutError,
)
from vboxctl.machine import (
    BOOT_DEVICES,
    MAX_BOOT_SLOTS,
    NIC,
    DriveType,
    Flag,
    Machine,
    MachineRecord,
    MachineState,
    NICHardware,
    NICNetwork,
    PFProto,
    PFRule,
    StorageBus,
    StorageController,
    StorageControllerChipset,
    StorageMedium,
    create_machine,
    get_machine,
    list_machines,
    parse_machine_info,
    parse_vm_list,
)

__version__ = "0.1.0"
