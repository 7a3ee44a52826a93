from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from efistub_install.errors import ResolutionError

DEFAULT_MICROCODE = 'intel-uc.img'
DEFAULT_KERNEL_PARAMETERS = 'quiet loglevel=3'


@dataclass(frozen=True)
class BootConfig:
    efi_drive: str
    efi_part_no: int
    kernel_version: Optional[str] = None
    boot_label: Optional[str] = None
    microcode: str = DEFAULT_MICROCODE
    microcode_explicit: bool = False  # named with --microcode, so it must exist
    root_flags: Optional[str] = None
    kernel_parameters: Optional[str] = None
    default_kernel_parameters: str = DEFAULT_KERNEL_PARAMETERS

    @property
    def efi_partition(self) -> str:
        # /dev/sda + 1 -> /dev/sda1, /dev/nvme0n1 + 1 -> /dev/nvme0n1p1
        sep = 'p' if self.efi_drive[-1:].isdigit() else ''
        return f'{self.efi_drive}{sep}{self.efi_part_no}'


@dataclass(frozen=True)
class ProbedFacts:
    esp_mount_point: Path
    kernel_version: str
    boot_label: str
    kernel_image: Path
    root_partuuid: str
    root_fstype: str
    root_flags: str
    microcode_present: bool
    initramfs_present: bool


def initramfs_name(version: str) -> str:
    return f'initramfs-{version}.img'


def _path_text(path) -> str:
    # Path('') renders as '.', which is not a usable location either
    text = str(path or '')
    return '' if text == '.' else text


@dataclass(frozen=True)
class BootEntryPlan:
    efi_executable_name: str
    loader_path: str
    unicode_parameters: str
    files: Tuple[Tuple[Path, Path], ...] = field(default_factory=tuple)

    @classmethod
    def build(cls, config: BootConfig, facts: ProbedFacts, boot_dir: Path = Path('/boot')) -> 'BootEntryPlan':
        """Derive the boot entry from the configuration and the probed facts.

        Raises ResolutionError when any required fact is empty; a partially
        filled plan is never returned.
        """
        required = {
            'EFI mount point': _path_text(facts.esp_mount_point),
            'kernel version': facts.kernel_version,
            'boot label': facts.boot_label,
            'kernel image': _path_text(facts.kernel_image),
            'root PARTUUID': facts.root_partuuid,
            'root filesystem type': facts.root_fstype,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ResolutionError('cannot build boot entry, unresolved: ' + ', '.join(missing))
        if not facts.initramfs_present:
            raise ResolutionError('cannot build boot entry without an initramfs')

        version = facts.kernel_version
        exe_name = f'vmlinuz-{version}.efi'
        initramfs = initramfs_name(version)

        params = [f'root=PARTUUID={facts.root_partuuid}', f'rootfstype={facts.root_fstype}']
        if facts.root_flags:
            params.append(f'rootflags={facts.root_flags}')
        params.append('rw')
        params.extend(config.default_kernel_parameters.split())
        if config.kernel_parameters:
            params.extend(config.kernel_parameters.split())
        # microcode has to be loaded before the initramfs
        if facts.microcode_present:
            params.append(f'initrd=\\{config.microcode}')
        params.append(f'initrd=\\{initramfs}')

        esp = Path(facts.esp_mount_point)
        files = [(Path(facts.kernel_image), esp / exe_name)]
        if esp != Path(boot_dir):
            if facts.microcode_present:
                files.append((Path(boot_dir) / config.microcode, esp / config.microcode))
            files.append((Path(boot_dir) / initramfs, esp / initramfs))

        return cls(
            efi_executable_name=exe_name,
            loader_path=f'\\{exe_name}',
            unicode_parameters=' '.join(params),
            files=tuple(files),
        )


@dataclass
class BootEntry:
    id: str  # '0000' style boot number
    description: str


@dataclass
class BootInfo:
    boot_order: Tuple[str, ...] = ()
    entries: Dict[str, BootEntry] = field(default_factory=dict)

    @property
    def first_in_order(self) -> Optional[str]:
        return self.boot_order[0] if self.boot_order else None
