from __future__ import annotations
import logging
import os
from pathlib import Path

from efistub_install.errors import NotFoundError, NotMountedError, ResolutionError
from efistub_install.models import BootConfig, ProbedFacts, initramfs_name
from efistub_install.platforms import linux
from efistub_install.platforms.common import machine

log = logging.getLogger(__name__)

BOOT_DIR = Path('/boot')
KERNEL_SRC_DIR = Path('/usr/src')
OS_RELEASE = Path('/etc/os-release')


def read_os_release(path: Path) -> dict:
    """Parse a key=value identity file such as /etc/os-release."""
    values = {}
    try:
        text = path.read_text()
    except OSError:
        return values
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, value = line.split('=', 1)
        values[key.strip()] = value.strip().strip('"\'')
    return values


class EnvironmentProber:
    """Collects the facts a boot entry needs, without changing anything.

    The steps in probe() run in a fixed order and the first one that cannot
    establish its fact raises.
    """

    def __init__(self, config: BootConfig, boot_dir: Path = BOOT_DIR,
                 src_dir: Path = KERNEL_SRC_DIR, os_release: Path = OS_RELEASE) -> None:
        self.config = config
        self.boot_dir = Path(boot_dir)
        self.src_dir = Path(src_dir)
        self.os_release = Path(os_release)

    def esp_mount_point(self) -> Path:
        part = self.config.efi_partition
        target = linux.findmnt('TARGET', part)
        if not target:
            raise NotMountedError(f'{part} is not mounted, mount the EFI system partition first')
        log.info('EFI system partition %s is mounted on %s', part, target)
        return Path(target)

    def kernel_version(self) -> str:
        version = self.config.kernel_version
        if not version:
            link = self.src_dir / 'linux'
            try:
                version = os.path.basename(os.readlink(link).rstrip('/'))
            except OSError:
                version = ''
            version = version.removeprefix('linux-')
        if not version:
            raise ResolutionError('cannot determine the kernel version, use --kernel-ver')
        log.info('kernel version: %s', version)
        return version

    def boot_label(self, version: str) -> str:
        label = self.config.boot_label
        if not label:
            name = read_os_release(self.os_release).get('NAME', '')
            label = f'{name} {version}' if name else ''
        if not label:
            raise ResolutionError('cannot determine a boot label, use --boot-label')
        log.info('boot label: %s', label)
        return label

    def kernel_image(self, version: str) -> Path:
        candidates = [
            self.boot_dir / f'vmlinuz-{version}',
            self.src_dir / f'linux-{version}' / 'arch' / machine() / 'boot' / 'bzImage',
        ]
        for path in candidates:
            if path.is_file():
                log.info('kernel image: %s', path)
                return path
        raise NotFoundError(f'no kernel image for {version}, looked for: '
                            + ', '.join(str(p) for p in candidates))

    def root_partuuid(self) -> str:
        partuuid = linux.findmnt('PARTUUID', '/')
        if not partuuid:
            raise ResolutionError('cannot determine the PARTUUID of the root filesystem')
        log.info('root PARTUUID: %s', partuuid)
        return partuuid

    def root_fstype(self) -> str:
        fstype = linux.findmnt('FSTYPE', '/')
        if not fstype:
            raise ResolutionError('cannot determine the filesystem type of the root filesystem')
        log.info('root filesystem type: %s', fstype)
        return fstype

    def root_flags(self) -> str:
        flags = self.config.root_flags or linux.findmnt('OPTIONS', '/')
        if flags:
            log.warning('using root flags "%s", they may need manual correction (see --root-flags)', flags)
        else:
            log.warning('cannot determine root mount flags, rootflags= will be omitted')
        return flags

    def microcode_present(self) -> bool:
        path = self.boot_dir / self.config.microcode
        if path.is_file():
            log.info('microcode image: %s', path)
            return True
        if self.config.microcode_explicit:
            raise NotFoundError(f'microcode image {path} not found')
        log.info('no microcode image at %s, skipping', path)
        return False

    def initramfs_present(self, version: str) -> bool:
        path = self.boot_dir / initramfs_name(version)
        if not path.is_file():
            raise NotFoundError(f'initramfs image {path} not found')
        log.info('initramfs image: %s', path)
        return True

    def probe(self) -> ProbedFacts:
        esp = self.esp_mount_point()
        version = self.kernel_version()
        label = self.boot_label(version)
        image = self.kernel_image(version)
        partuuid = self.root_partuuid()
        fstype = self.root_fstype()
        flags = self.root_flags()
        microcode = self.microcode_present()
        initramfs = self.initramfs_present(version)
        return ProbedFacts(
            esp_mount_point=esp,
            kernel_version=version,
            boot_label=label,
            kernel_image=image,
            root_partuuid=partuuid,
            root_fstype=fstype,
            root_flags=flags,
            microcode_present=microcode,
            initramfs_present=initramfs,
        )
