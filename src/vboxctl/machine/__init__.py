"""VirtualBox machine records, parsing and lifecycle control."""

from vboxctl.machine.lifecycle import (
    Machine,
    create_machine,
    get_machine,
    list_machines,
)
from vboxctl.machine.parser import (
    is_machine_not_found,
    parse_machine_info,
    parse_vm_list,
)
from vboxctl.machine.record import MachineRecord
from vboxctl.machine.types import (
    BOOT_DEVICES,
    MAX_BOOT_SLOTS,
    NIC,
    DriveType,
    Flag,
    MachineState,
    NICHardware,
    NICNetwork,
    PFProto,
    PFRule,
    StorageBus,
    StorageController,
    StorageControllerChipset,
    StorageMedium,
)
