"""
In-memory stand-ins for VBoxManage.

Both classes implement the ``run(args) -> CommandResult`` executor interface
and can be passed as ``runner=`` anywhere a VBoxManageRunner is accepted.
"""

import uuid as uuidlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from vboxctl.core.command_runner import CommandResult
from vboxctl.machine.record import MachineRecord
from vboxctl.machine.types import MAX_BOOT_SLOTS, STOPPED_STATES, MachineState

DEFAULT_BASE_FOLDER = "/home/vbox/VirtualBox VMs"

# modifyvm options stored as plain record fields
NUMERIC_OPTIONS = {"--cpus": "cpus", "--memory": "memory", "--vram": "vram"}


# VBoxManage diagnostics, as printed on stderr
def _not_found(machine_id: str) -> str:
    return (
        f"VBoxManage: error: Could not find a registered machine named '{machine_id}'\n"
        "VBoxManage: error: Details: code VBOX_E_OBJECT_NOT_FOUND (0x80bb0001), "
        "component VirtualBoxWrap, interface IVirtualBox, callee nsISupports\n"
    )


def _not_running(name: str) -> str:
    return f"VBoxManage: error: Machine '{name}' is not currently running\n"


def _locked(name: str) -> str:
    return (
        f"VBoxManage: error: The machine '{name}' is already locked for a session "
        "(or being unlocked)\n"
    )


def _syntax_error(detail: str) -> str:
    return f"VBoxManage: error: Syntax error: {detail}\n"


def _no_controller(name: str) -> str:
    return f"VBoxManage: error: Could not find a storage controller named '{name}'\n"


@dataclass
class FakeMachine:
    """A machine registered with the fake backend."""

    record: MachineRecord
    settings: Dict[str, str] = field(default_factory=dict)
    port_forwards: Dict[Tuple[int, str], str] = field(default_factory=dict)
    controllers: Dict[str, Dict[str, str]] = field(default_factory=dict)
    attachments: Dict[Tuple[str, int, int], Dict[str, str]] = field(
        default_factory=dict
    )
    # showvminfo queries left before a pending ACPI shutdown completes
    shutdown_countdown: Optional[int] = None


def _ok(stdout: str = "") -> CommandResult:
    return CommandResult(returncode=0, stdout=stdout, stderr="")


def _fail(stderr: str, returncode: int = 1) -> CommandResult:
    return CommandResult(returncode=returncode, stdout="", stderr=stderr)


def _option_pairs(args: Sequence[str]) -> Dict[str, str]:
    """Pair up ``--option value`` arguments."""
    return dict(zip(args[::2], args[1::2]))


class FakeVBoxManage:  # pylint: disable=too-many-public-methods
    """
    Deterministic in-memory VBoxManage.

    ``shutdown_after`` is the number of showvminfo queries, counted from the
    first ACPI power-button press, after which a running machine reports
    poweroff.
    """

    def __init__(self, shutdown_after: int = 1):
        self.machines: Dict[str, FakeMachine] = {}  # keyed by UUID
        self.calls: List[List[str]] = []
        self.shutdown_after = shutdown_after

    def add_machine(  # pylint: disable=too-many-arguments
        self,
        name: str,
        state: MachineState = MachineState.POWEROFF,
        memory: int = 512,
        cpus: int = 1,
        vram: int = 8,
        uuid: Optional[str] = None,
        base_folder: str = DEFAULT_BASE_FOLDER,
        os_type: str = "Other",
    ) -> MachineRecord:
        """Register a machine directly, without recording a call."""
        folder = f"{base_folder}/{name}"
        record = MachineRecord(
            name=name,
            uuid=uuid or str(uuidlib.uuid4()),
            state=state,
            cpus=cpus,
            memory=memory,
            vram=vram,
            cfg_file=f"{folder}/{name}.vbox",
            base_folder=folder,
            os_type=os_type,
            boot_order=["floppy", "dvd", "disk"],
        )
        self.machines[record.uuid] = FakeMachine(record=record)
        return record

    def find(self, machine_id: str) -> Optional[FakeMachine]:
        """Look a machine up by UUID or name."""
        if machine_id in self.machines:
            return self.machines[machine_id]
        for machine in self.machines.values():
            if machine.record.name == machine_id:
                return machine
        return None

    def commands(self, name: str) -> List[List[str]]:
        """Recorded calls whose first argument is ``name``."""
        return [call for call in self.calls if call and call[0] == name]

    def controlvm_actions(self) -> List[str]:
        """The action word of every recorded controlvm call."""
        return [call[2] for call in self.commands("controlvm") if len(call) > 2]

    def run(self, args: Sequence[str]) -> CommandResult:
        """Execute one VBoxManage command against the in-memory state."""
        args = list(args)
        self.calls.append(args)
        if not args:
            return _fail(_syntax_error("no command"))

        handler = getattr(self, "_cmd_" + args[0], None)
        if handler is None:
            return _fail(_syntax_error(f"unknown command '{args[0]}'"))
        return handler(args[1:])

    def _lookup(self, args: Sequence[str]):
        if not args:
            return None, _fail(_syntax_error("missing machine"))
        machine = self.find(args[0])
        if machine is None:
            return None, _fail(_not_found(args[0]))
        return machine, None

    def _cmd_list(self, args: Sequence[str]) -> CommandResult:
        if args != ["vms"]:
            return _fail(_syntax_error("unsupported list"))
        lines = [
            f'"{machine.record.name}" {{{machine.record.uuid}}}'
            for machine in self.machines.values()
        ]
        return _ok("".join(line + "\n" for line in lines))

    def _cmd_showvminfo(self, args: Sequence[str]) -> CommandResult:
        machine, error = self._lookup(args)
        if error:
            return error

        if machine.shutdown_countdown is not None:
            machine.shutdown_countdown -= 1
            if machine.shutdown_countdown <= 0:
                machine.record.state = MachineState.POWEROFF
                machine.shutdown_countdown = None

        record = machine.record
        lines = [
            f'name="{record.name}"',
            f'ostype="{record.os_type}"',
            f'UUID="{record.uuid}"',
            f'CfgFile="{record.cfg_file}"',
            f'memory={record.memory}',
            f'vram={record.vram}',
            f'cpus={record.cpus}',
        ]
        for slot in range(MAX_BOOT_SLOTS):
            device = record.boot_order[slot] if slot < len(record.boot_order) else "none"
            lines.append(f'boot{slot + 1}="{device}"')
        lines.append(f'VMState="{MachineState(record.state).value}"')
        lines.append('VMStateChangeTime="2026-01-01T00:00:00.000000000"')
        return _ok("".join(line + "\n" for line in lines))

    def _cmd_createvm(self, args: Sequence[str]) -> CommandResult:
        options = _option_pairs([arg for arg in args if arg != "--register"])
        name = options.get("--name")
        if not name:
            return _fail(_syntax_error("--name is required"))
        if self.find(name):
            return _fail("VBoxManage: error: Machine settings file already exists\n")
        record = self.add_machine(
            name, base_folder=options.get("--basefolder", DEFAULT_BASE_FOLDER)
        )
        return _ok(
            f"Virtual machine '{name}' is created and registered.\nUUID: {record.uuid}\n"
        )

    def _cmd_startvm(self, args: Sequence[str]) -> CommandResult:
        machine, error = self._lookup(args)
        if error:
            return error
        if machine.record.state not in STOPPED_STATES:
            return _fail(_locked(machine.record.name))
        machine.record.state = MachineState.RUNNING
        return _ok(
            f'Waiting for VM "{machine.record.name}" to power on...\n'
            f'VM "{machine.record.name}" has been successfully started.\n'
        )

    def _cmd_controlvm(self, args: Sequence[str]) -> CommandResult:
        machine, error = self._lookup(args)
        if error:
            return error
        if len(args) < 2:
            return _fail(_syntax_error("missing controlvm action"))

        record = machine.record
        action = args[1]
        if record.state not in (MachineState.RUNNING, MachineState.PAUSED):
            return _fail(_not_running(record.name))

        if action == "resume":
            if record.state != MachineState.PAUSED:
                return _fail("VBoxManage: error: Machine in invalid state 1 -- running\n")
            record.state = MachineState.RUNNING
        elif action == "pause":
            record.state = MachineState.PAUSED
        elif action == "savestate":
            record.state = MachineState.SAVED
        elif action == "poweroff":
            record.state = MachineState.POWEROFF
            machine.shutdown_countdown = None
        elif action == "reset":
            record.state = MachineState.RUNNING
        elif action == "acpipowerbutton":
            if machine.shutdown_countdown is None:
                machine.shutdown_countdown = self.shutdown_after
        elif action.startswith("natpf") and action[5:].isdigit():
            return self._natpf(machine, int(action[5:]), args[2:])
        else:
            return _fail(_syntax_error(f"unknown controlvm action '{action}'"))
        return _ok()

    def _natpf(self, machine: FakeMachine, nic: int, args: Sequence[str]) -> CommandResult:
        if len(args) == 2 and args[0] == "delete":
            if machine.port_forwards.pop((nic, args[1]), None) is None:
                return _fail(f"VBoxManage: error: Rule {args[1]} not found\n")
            return _ok()
        if len(args) != 1 or "," not in args[0]:
            return _fail(_syntax_error("invalid port-forwarding rule"))
        name, rule = args[0].split(",", 1)
        machine.port_forwards[(nic, name)] = rule
        return _ok()

    def _cmd_modifyvm(self, args: Sequence[str]) -> CommandResult:
        machine, error = self._lookup(args)
        if error:
            return error
        record = machine.record
        if record.state in (MachineState.RUNNING, MachineState.PAUSED):
            return _fail(_locked(record.name))

        options = _option_pairs(args[1:])
        boot_order = list(record.boot_order)
        for option, value in options.items():
            if option in NUMERIC_OPTIONS:
                setattr(record, NUMERIC_OPTIONS[option], int(value))
            elif option == "--ostype":
                record.os_type = value
            elif option.startswith("--boot") and option[6:].isdigit():
                slot = int(option[6:]) - 1
                boot_order += ["none"] * (slot + 1 - len(boot_order))
                boot_order[slot] = value
            else:
                machine.settings[option] = value
        while boot_order and boot_order[-1] == "none":
            boot_order.pop()
        record.boot_order = boot_order
        return _ok()

    def _cmd_unregistervm(self, args: Sequence[str]) -> CommandResult:
        machine, error = self._lookup(args)
        if error:
            return error
        if machine.record.state in (MachineState.RUNNING, MachineState.PAUSED):
            return _fail(_locked(machine.record.name))
        del self.machines[machine.record.uuid]
        return _ok()

    def _cmd_storagectl(self, args: Sequence[str]) -> CommandResult:
        machine, error = self._lookup(args)
        if error:
            return error
        rest = list(args[1:])
        remove = "--remove" in rest
        if remove:
            rest.remove("--remove")
        options = _option_pairs(rest)
        name = options.pop("--name", None)
        if not name:
            return _fail(_syntax_error("--name is required"))
        if remove:
            if machine.controllers.pop(name, None) is None:
                return _fail(_no_controller(name))
            return _ok()
        machine.controllers.setdefault(name, {}).update(options)
        return _ok()

    def _cmd_storageattach(self, args: Sequence[str]) -> CommandResult:
        machine, error = self._lookup(args)
        if error:
            return error
        options = _option_pairs(args[1:])
        controller = options.get("--storagectl", "")
        if controller not in machine.controllers:
            return _fail(_no_controller(controller))
        key = (controller, int(options.get("--port", 0)), int(options.get("--device", 0)))
        machine.attachments[key] = {
            "type": options.get("--type", ""),
            "medium": options.get("--medium", ""),
        }
        return _ok()


class FailingVBoxManage:
    """Executor whose every command fails."""

    def __init__(self, stderr: str = "mock os exit 1", returncode: int = 1):
        self.stderr = stderr
        self.returncode = returncode
        self.calls: List[List[str]] = []

    def run(self, args: Sequence[str]) -> CommandResult:
        """Record the call and fail."""
        self.calls.append(list(args))
        return _fail(self.stderr, self.returncode)
