"""
In-memory representation of a VirtualBox machine.
"""

from dataclasses import dataclass, field
from typing import List

from vboxctl.core.exceptions import EmptyIdentifierError
from vboxctl.i18n import _
from vboxctl.machine.types import MAX_BOOT_SLOTS, Flag, MachineState


@dataclass
class MachineRecord:  # pylint: disable=too-many-instance-attributes
    """Configuration and last observed state of one machine."""

    name: str = ""
    uuid: str = ""
    state: MachineState = MachineState.POWEROFF
    state_text: str = ""  # VMState exactly as reported
    cpus: int = 0
    memory: int = 0  # main memory (in MB)
    vram: int = 0  # video memory (in MB)
    cfg_file: str = ""
    base_folder: str = ""
    os_type: str = ""
    flags: Flag = Flag.NONE
    boot_order: List[str] = field(default_factory=list)  # each in BOOT_DEVICES

    def __post_init__(self):
        if not self.state_text:
            self.state_text = MachineState(self.state).value

    @property
    def identifier(self) -> str:
        """Name if set, otherwise UUID."""
        if self.name:
            return self.name
        if self.uuid:
            return self.uuid
        raise EmptyIdentifierError(_("Machine has neither a name nor a UUID"))

    def boot_slots(self) -> List[str]:
        """Boot devices used for configuration, at most four."""
        return list(self.boot_order[:MAX_BOOT_SLOTS])
