"""
VirtualBox machine lifecycle operations.

This module decides which VBoxManage command to issue for a start, save,
pause, stop, poweroff, restart, reset or delete request based on the last
observed machine state, and wraps the configuration and peripheral commands.
"""

import time
from typing import List, Optional

from vboxctl.core.command_runner import CommandResult, VBoxManageRunner, check_result
from vboxctl.core.config import ConfigManager
from vboxctl.core.exceptions import (
    EmptyIdentifierError,
    InvalidSettingError,
    MachineExistsError,
    MachineNotFoundError,
    MachineTimeoutError,
    VBoxManageError,
)
from vboxctl.i18n import _
from vboxctl.machine.parser import (
    is_machine_not_found,
    parse_machine_info,
    parse_vm_list,
)
from vboxctl.machine.record import MachineRecord
from vboxctl.machine.types import (
    BOOT_DEVICES,
    FLAG_OPTIONS,
    NIC,
    STOPPED_STATES,
    DriveType,
    MachineState,
    NICHardware,
    NICNetwork,
    PFRule,
    StorageBus,
    StorageController,
    StorageControllerChipset,
    StorageMedium,
    bool_to_onoff,
    flag_value,
)
from vboxctl.utils.verbosity_logger import get_logger

# Legacy BIOS profile applied on every modify
FIRMWARE_OPTIONS = [
    "--firmware",
    "bios",
    "--bioslogofadein",
    "off",
    "--bioslogofadeout",
    "off",
    "--bioslogodisplaytime",
    "0",
    "--biosbootmenu",
    "disabled",
]


def _default_runner(config=None):
    return VBoxManageRunner(config=config)


def _query(runner, machine_id: str) -> MachineRecord:
    """Run showvminfo for one machine and parse it."""
    args = ["showvminfo", machine_id, "--machinereadable"]
    result = runner.run(args)
    if result.returncode != 0:
        if is_machine_not_found(result.stderr):
            raise MachineNotFoundError(machine_id, result.stderr)
        raise VBoxManageError(args, result.returncode, result.stderr)
    return parse_machine_info(result.stdout)


class Machine:
    """A registered VirtualBox machine and the commands that act on it."""

    def __init__(
        self,
        record: MachineRecord,
        runner=None,
        logger=None,
        config: Optional[ConfigManager] = None,
    ):
        """
        Initialize machine operations.

        Args:
            record: Last known configuration and state
            runner: Command executor with a ``run(args)`` method
            logger: Logger instance
            config: ConfigManager for stop loop bounds
        """
        self.record = record
        self.config = config
        self.runner = runner or _default_runner(config)
        self.logger = logger or get_logger(__name__, config)
        self.poll_interval = config.get_stop_poll_interval() if config else 1.0
        self.max_stop_attempts = config.get_stop_max_attempts() if config else 300
        self.deleted = False

    def __repr__(self):
        return (
            f"Machine(name={self.record.name!r}, uuid={self.record.uuid!r}, "
            f"state={self.record.state.value})"
        )

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def uuid(self) -> str:
        return self.record.uuid

    @property
    def state(self) -> MachineState:
        return self.record.state

    def _vbm(self, *args: str) -> CommandResult:
        """Issue a VBoxManage command against this machine."""
        if self.deleted:
            raise MachineNotFoundError(self.record.name or self.record.uuid)
        result = self.runner.run(list(args))
        if result.returncode != 0 and is_machine_not_found(result.stderr):
            raise MachineNotFoundError(self.record.identifier, result.stderr)
        return check_result(args, result)

    def refresh(self) -> None:
        """Reload the record from VBoxManage."""
        if self.deleted:
            raise MachineNotFoundError(self.record.name or self.record.uuid)
        fresh = _query(self.runner, self.record.identifier)
        # Not reported in a form modifyvm accepts, keep the caller's values
        fresh.os_type = self.record.os_type
        fresh.flags = self.record.flags
        self.record = fresh

    def start(self) -> None:
        """Start or resume the machine headless."""
        state = self.record.state
        if state == MachineState.PAUSED:
            self.logger.info("Resuming VirtualBox VM: %s", self.record.identifier)
            self._vbm("controlvm", self.record.identifier, "resume")
        elif state in STOPPED_STATES:
            self.logger.info("Starting VirtualBox VM: %s", self.record.identifier)
            self._vbm("startvm", self.record.identifier, "--type", "headless")
        else:
            self.logger.debug(
                "Start skipped, %s is %s", self.record.identifier, self.record.state_text
            )

    def save(self) -> None:
        """Suspend the machine and save its state to disk."""
        if self.record.state in STOPPED_STATES:
            self.logger.debug("Save skipped, %s is not running", self.record.identifier)
            return
        if self.record.state == MachineState.PAUSED:
            self.start()
        self.logger.info("Saving state of VirtualBox VM: %s", self.record.identifier)
        self._vbm("controlvm", self.record.identifier, "savestate")

    def pause(self) -> None:
        """Pause execution of the machine."""
        if self.record.state in STOPPED_STATES or self.record.state == MachineState.PAUSED:
            self.logger.debug("Pause skipped, %s is not running", self.record.identifier)
            return
        self.logger.info("Pausing VirtualBox VM: %s", self.record.identifier)
        self._vbm("controlvm", self.record.identifier, "pause")

    def stop(self) -> None:
        """
        Gracefully stop the machine.

        Presses the ACPI power button and re-queries the state every
        ``poll_interval`` seconds until the machine reports poweroff.

        Raises:
            MachineTimeoutError: If the machine is still up after
                ``max_stop_attempts`` presses
        """
        if self.record.state in STOPPED_STATES:
            self.logger.debug("Stop skipped, %s is not running", self.record.identifier)
            return
        if self.record.state == MachineState.PAUSED:
            self.start()

        self.logger.info("Stopping VirtualBox VM: %s", self.record.identifier)
        attempts = 0
        while self.record.state != MachineState.POWEROFF:
            if attempts >= self.max_stop_attempts:
                raise MachineTimeoutError(
                    self.record.identifier, MachineState.POWEROFF.value, attempts
                )
            attempts += 1
            self._vbm("controlvm", self.record.identifier, "acpipowerbutton")
            time.sleep(self.poll_interval)
            self.refresh()
        self.logger.debug(
            "VirtualBox VM %s powered off after %d attempts",
            self.record.identifier,
            attempts,
        )

    def poweroff(self) -> None:
        """Forcefully stop the machine. State is lost and the disk may be corrupted."""
        if self.record.state in STOPPED_STATES:
            self.logger.debug(
                "Poweroff skipped, %s is not running", self.record.identifier
            )
            return
        self.logger.info("Powering off VirtualBox VM: %s", self.record.identifier)
        self._vbm("controlvm", self.record.identifier, "poweroff")

    def restart(self) -> None:
        """Gracefully restart the machine."""
        if self.record.state in (MachineState.PAUSED, MachineState.SAVED):
            self.start()
            self.refresh()
        self.stop()
        self.start()

    def reset(self) -> None:
        """Forcefully restart the machine. State is lost and the disk may be corrupted."""
        if self.record.state in (MachineState.PAUSED, MachineState.SAVED):
            self.start()
        self.logger.info("Resetting VirtualBox VM: %s", self.record.identifier)
        self._vbm("controlvm", self.record.identifier, "reset")

    def delete(self) -> None:
        """Unregister the machine and delete its files and disk images."""
        self.poweroff()
        self.logger.info("Deleting VirtualBox VM: %s", self.record.identifier)
        self._vbm("unregistervm", self.record.identifier, "--delete")
        self.deleted = True

    def modify_args(self) -> List[str]:
        """Build the modifyvm arguments for the current record."""
        record = self.record
        boot_slots = record.boot_slots()
        for device in boot_slots:
            if device not in BOOT_DEVICES:
                raise InvalidSettingError(
                    _("Invalid boot device %r, expected one of: %s")
                    % (device, ", ".join(BOOT_DEVICES))
                )

        args = ["modifyvm", record.identifier, *FIRMWARE_OPTIONS]
        args += [
            "--ostype",
            record.os_type,
            "--cpus",
            str(record.cpus),
            "--memory",
            str(record.memory),
            "--vram",
            str(record.vram),
        ]
        for bit, option in FLAG_OPTIONS:
            args += [option, flag_value(record.flags, bit)]
        for slot, device in enumerate(boot_slots, start=1):
            args += [f"--boot{slot}", device]
        return args

    def modify(self) -> None:
        """Apply the record's settings in one modifyvm call, then refresh."""
        args = self.modify_args()
        self.logger.info("Modifying VirtualBox VM: %s", self.record.identifier)
        self._vbm(*args)
        self.refresh()

    def add_natpf(self, nic: int, name: str, rule: PFRule) -> None:
        """Add a NAT port-forwarding rule to the n-th NIC."""
        self._vbm(
            "controlvm",
            self.record.identifier,
            f"natpf{nic}",
            f"{name},{rule.format()}",
        )

    def del_natpf(self, nic: int, name: str) -> None:
        """Delete the named NAT port-forwarding rule from the n-th NIC."""
        self._vbm("controlvm", self.record.identifier, f"natpf{nic}", "delete", name)

    def set_nic(self, index: int, nic: NIC) -> None:
        """Configure the n-th NIC."""
        network = NICNetwork(nic.network)
        args = [
            "modifyvm",
            self.record.identifier,
            f"--nic{index}",
            network.value,
            f"--nictype{index}",
            NICHardware(nic.hardware).value,
            f"--cableconnected{index}",
            "on",
        ]
        if network == NICNetwork.HOSTONLY:
            args += [f"--hostonlyadapter{index}", nic.hostonly_adapter]
        self._vbm(*args)

    def add_storage_ctl(self, name: str, ctl: StorageController) -> None:
        """Add a storage controller with the given name."""
        args = ["storagectl", self.record.identifier, "--name", name]
        if ctl.bus:
            args += ["--add", StorageBus(ctl.bus).value]
        if ctl.ports > 0:
            args += ["--portcount", str(ctl.ports)]
        if ctl.chipset:
            args += ["--controller", StorageControllerChipset(ctl.chipset).value]
        args += ["--hostiocache", bool_to_onoff(ctl.host_io_cache)]
        args += ["--bootable", bool_to_onoff(ctl.bootable)]
        self._vbm(*args)

    def del_storage_ctl(self, name: str) -> None:
        """Remove the named storage controller."""
        self._vbm("storagectl", self.record.identifier, "--name", name, "--remove")

    def attach_storage(self, ctl_name: str, medium: StorageMedium) -> None:
        """Attach a medium to a port/device slot of the named controller."""
        self._vbm(
            "storageattach",
            self.record.identifier,
            "--storagectl",
            ctl_name,
            "--port",
            str(medium.port),
            "--device",
            str(medium.device),
            "--type",
            DriveType(medium.drive_type).value,
            "--medium",
            medium.medium,
        )


def get_machine(machine_id: str, runner=None, logger=None, config=None) -> Machine:
    """
    Find a machine by its name or UUID.

    Raises:
        MachineNotFoundError: If VirtualBox has no such machine
        VBoxManageError: If showvminfo fails for another reason
        MachineInfoParseError: If the output has malformed numeric fields
    """
    runner = runner or _default_runner(config)
    return Machine(_query(runner, machine_id), runner, logger, config)


def list_machines(runner=None, logger=None, config=None) -> List[Machine]:
    """List all registered machines with their full settings."""
    runner = runner or _default_runner(config)
    args = ["list", "vms"]
    result = check_result(args, runner.run(args))
    return [
        get_machine(uuid, runner, logger, config)
        for _name, uuid in parse_vm_list(result.stdout)
    ]


def create_machine(
    name: str, base_folder: str = "", runner=None, logger=None, config=None
) -> Machine:
    """
    Create and register a new machine.

    Args:
        name: Machine name, must not be empty
        base_folder: Folder for the machine's files; VirtualBox's default if empty

    Raises:
        EmptyIdentifierError: If name is empty
        MachineExistsError: If a machine with this name is already registered
    """
    if not name:
        raise EmptyIdentifierError(_("Machine name is empty"))

    runner = runner or _default_runner(config)
    logger = logger or get_logger(__name__, config)

    for machine in list_machines(runner, logger, config):
        if machine.name == name:
            raise MachineExistsError(name)

    args = ["createvm", "--name", name, "--register"]
    if base_folder:
        args += ["--basefolder", base_folder]
    logger.info("Creating VirtualBox VM: %s", name)
    check_result(args, runner.run(args))

    return get_machine(name, runner, logger, config)
