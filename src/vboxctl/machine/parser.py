"""
Parsers for VBoxManage text output.

``showvminfo --machinereadable`` prints one ``key=value`` pair per line, with
either side optionally double-quoted. ``list vms`` prints ``"name" {uuid}``.
"""

import os
import re
from typing import List, Tuple

from vboxctl.core.exceptions import MachineInfoParseError
from vboxctl.machine.record import MachineRecord
from vboxctl.machine.types import MAX_BOOT_SLOTS, MachineState

VM_INFO_LINE = re.compile(r'^(?:"(.+?)"|([^="]+))=(?:"(.*)"|(.*))$')
VM_NAME_UUID = re.compile(r'^"(.+)"\s+\{([0-9a-fA-F-]+)\}$')
MACHINE_NOT_FOUND = re.compile(r"Could not find a registered machine")
UNSIGNED = re.compile(r"^[0-9]+$")
UINT32_MAX = 0xFFFFFFFF

NUMERIC_FIELDS = frozenset({"memory", "cpus", "vram"})
BOOT_KEYS = {f"boot{slot}": slot for slot in range(1, MAX_BOOT_SLOTS + 1)}


def _parse_unsigned(key: str, value: str) -> int:
    if not UNSIGNED.match(value) or int(value) > UINT32_MAX:
        raise MachineInfoParseError(key, value)
    return int(value)


def parse_machine_info(text: str) -> MachineRecord:
    """
    Build a MachineRecord from ``showvminfo --machinereadable`` output.

    Lines that are not key/value pairs and keys that are not recognized are
    skipped. Output without a ``VMState`` line gives ``MachineState.UNKNOWN``
    and an empty ``state_text``.

    Raises:
        MachineInfoParseError: If memory, cpus or vram is not an unsigned integer
    """
    # Without a VMState line nothing is known about the state
    record = MachineRecord(state=MachineState.UNKNOWN)
    record.state_text = ""
    boot_slots = {}

    for line in text.splitlines():
        match = VM_INFO_LINE.match(line.strip())
        if not match:
            continue
        key = match.group(1) or match.group(2)
        value = match.group(3) if match.group(3) is not None else match.group(4)

        if key == "name":
            record.name = value
        elif key == "UUID":
            record.uuid = value
        elif key == "VMState":
            record.state = MachineState.from_text(value)
            record.state_text = value
        elif key in NUMERIC_FIELDS:
            setattr(record, key, _parse_unsigned(key, value))
        elif key == "CfgFile":
            record.cfg_file = value
            record.base_folder = os.path.dirname(value)
        elif key in BOOT_KEYS:
            boot_slots[BOOT_KEYS[key]] = value

    last_slot = max(boot_slots, default=0)
    boot_order = [boot_slots.get(slot, "none") for slot in range(1, last_slot + 1)]
    while boot_order and boot_order[-1] == "none":
        boot_order.pop()
    record.boot_order = boot_order

    return record


def parse_vm_list(text: str) -> List[Tuple[str, str]]:
    """Return (name, uuid) pairs from ``list vms`` output."""
    machines = []
    for line in text.splitlines():
        match = VM_NAME_UUID.match(line.strip())
        if match:
            machines.append((match.group(1), match.group(2)))
    return machines


def is_machine_not_found(stderr: str) -> bool:
    """True if VBoxManage reported that the machine is not registered."""
    return bool(MACHINE_NOT_FOUND.search(stderr or ""))
