"""
VirtualBox machine type definitions.
"""

import enum
from dataclasses import dataclass


class MachineState(str, enum.Enum):
    """VMState values reported by ``showvminfo --machinereadable``."""

    POWEROFF = "poweroff"
    RUNNING = "running"
    PAUSED = "paused"
    SAVED = "saved"
    ABORTED = "aborted"
    UNKNOWN = "unknown"

    @classmethod
    def from_text(cls, text: str) -> "MachineState":
        """Map VBoxManage text to a state; unrecognized text is UNKNOWN."""
        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN


# States in which the machine is not executing and holds no live session
STOPPED_STATES = frozenset(
    {MachineState.POWEROFF, MachineState.SAVED, MachineState.ABORTED}
)


class Flag(enum.IntFlag):
    """Feature toggles, named after their ``modifyvm`` options."""

    NONE = 0
    ACPI = 1 << 0
    IOAPIC = 1 << 1
    RTCUSEUTC = 1 << 2
    CPUHOTPLUG = 1 << 3
    PAE = 1 << 4
    LONGMODE = 1 << 5
    SYNTHCPU = 1 << 6
    HPET = 1 << 7
    HWVIRTEX = 1 << 8
    TRIPLEFAULTRESET = 1 << 9
    NESTEDPAGING = 1 << 10
    LARGEPAGES = 1 << 11
    VTXVPID = 1 << 12
    VTXUX = 1 << 13
    ACCELERATE3D = 1 << 14


# Bit order is the order the options appear in the modifyvm command
FLAG_OPTIONS = (
    (Flag.ACPI, "--acpi"),
    (Flag.IOAPIC, "--ioapic"),
    (Flag.RTCUSEUTC, "--rtcuseutc"),
    (Flag.CPUHOTPLUG, "--cpuhotplug"),
    (Flag.PAE, "--pae"),
    (Flag.LONGMODE, "--longmode"),
    (Flag.SYNTHCPU, "--synthcpu"),
    (Flag.HPET, "--hpet"),
    (Flag.HWVIRTEX, "--hwvirtex"),
    (Flag.TRIPLEFAULTRESET, "--triplefaultreset"),
    (Flag.NESTEDPAGING, "--nestedpaging"),
    (Flag.LARGEPAGES, "--largepages"),
    (Flag.VTXVPID, "--vtxvpid"),
    (Flag.VTXUX, "--vtxux"),
    (Flag.ACCELERATE3D, "--accelerate3d"),
)


def bool_to_onoff(value: bool) -> str:
    """Render a boolean as VBoxManage's on/off token."""
    return "on" if value else "off"


def flag_value(flags: Flag, bit: Flag) -> str:
    """Return "on" if ``bit`` is set in ``flags``, else "off"."""
    return bool_to_onoff(flags & bit == bit)


BOOT_DEVICES = ("none", "floppy", "dvd", "disk", "net")
MAX_BOOT_SLOTS = 4


class NICNetwork(str, enum.Enum):
    """Attachment type of a virtual network adapter (``--nic<n>``)."""

    NONE = "none"
    NULL = "null"
    NAT = "nat"
    NATNETWORK = "natnetwork"
    BRIDGED = "bridged"
    INTNET = "intnet"
    HOSTONLY = "hostonly"
    GENERIC = "generic"


class NICHardware(str, enum.Enum):
    """Emulated adapter model (``--nictype<n>``)."""

    AMD_PCNET_PCI_II = "Am79C970A"
    AMD_PCNET_FAST_III = "Am79C973"
    INTEL_PRO1000_MT_DESKTOP = "82540EM"
    INTEL_PRO1000_T_SERVER = "82543GC"
    INTEL_PRO1000_MT_SERVER = "82545EM"
    VIRTIO = "virtio"


@dataclass
class NIC:
    """Virtual network adapter settings."""

    network: NICNetwork
    hardware: NICHardware = NICHardware.INTEL_PRO1000_MT_DESKTOP
    hostonly_adapter: str = ""


class PFProto(str, enum.Enum):
    """Port-forwarding protocol."""

    TCP = "tcp"
    UDP = "udp"


@dataclass
class PFRule:
    """NAT port-forwarding rule from a host port to a guest port."""

    proto: PFProto
    host_port: int
    guest_port: int
    host_ip: str = ""
    guest_ip: str = ""

    def format(self) -> str:
        """Render as ``proto,hostip,hostport,guestip,guestport``."""
        proto = PFProto(self.proto).value
        return (
            f"{proto},{self.host_ip},{self.host_port:d},"
            f"{self.guest_ip},{self.guest_port:d}"
        )


class StorageBus(str, enum.Enum):
    """System bus of a storage controller (``storagectl --add``)."""

    NONE = ""
    IDE = "ide"
    SATA = "sata"
    SCSI = "scsi"
    FLOPPY = "floppy"
    SAS = "sas"
    USB = "usb"
    PCIE = "pcie"


class StorageControllerChipset(str, enum.Enum):
    """Controller chipset (``storagectl --controller``)."""

    NONE = ""
    PIIX3 = "PIIX3"
    PIIX4 = "PIIX4"
    ICH6 = "ICH6"
    INTEL_AHCI = "IntelAhci"
    LSI_LOGIC = "LSILogic"
    BUS_LOGIC = "BusLogic"
    LSI_LOGIC_SAS = "LSILogicSAS"
    USB = "USB"
    NVME = "NVMe"


@dataclass
class StorageController:
    """Storage controller settings; empty bus/chipset and 0 ports are omitted."""

    bus: StorageBus = StorageBus.NONE
    ports: int = 0
    chipset: StorageControllerChipset = StorageControllerChipset.NONE
    host_io_cache: bool = False
    bootable: bool = True


class DriveType(str, enum.Enum):
    """Attached drive type (``storageattach --type``)."""

    DVD = "dvddrive"
    HDD = "hdd"
    FDD = "fdd"


@dataclass
class StorageMedium:
    """A medium attached to one port/device slot of a storage controller."""

    port: int
    device: int
    drive_type: DriveType
    medium: str
