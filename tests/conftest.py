import subprocess

import pytest

from efistub_install.platforms import linux

VERSION = '6.1.0-gentoo'
PARTUUID = '3c5a1d2e-01'

# pylint: disable=line-too-long
EFIBOOTMGR_OUTPUT = """\
BootCurrent: 0001
Timeout: 1 seconds
BootOrder: 0004,0001,0003,0000
Boot0000* Windows Boot Manager	HD(1,GPT,aa11,0x800,0x32000)/File(\\EFI\\Microsoft\\Boot\\bootmgfw.efi)
Boot0001* Gentoo 6.1.0-gentoo	HD(1,GPT,bb22,0x800,0x100000)/File(\\vmlinuz-6.1.0-gentoo.efi)
Boot0003  gentoo 6.1.0-GENTOO	HD(1,GPT,bb22,0x800,0x100000)/File(\\vmlinuz-6.1.0-gentoo.efi)
Boot0004* Gentoo 6.1.0-gentoo	HD(1,GPT,bb22,0x800,0x100000)/File(\\vmlinuz-6.1.0-gentoo.efi)
"""


class RunMocked:
    """Stands in for platforms.common.run, answering findmnt/efibootmgr calls."""

    def __init__(self, mounts=None, listing=EFIBOOTMGR_OUTPUT, fail=()):
        # the ESP is unmounted until a test adds a ('TARGET', <partition>) entry
        self.mounts = {
            ('PARTUUID', '/'): PARTUUID,
            ('FSTYPE', '/'): 'ext4',
            ('OPTIONS', '/'): 'rw,relatime',
        }
        self.mounts.update(mounts or {})
        self.listing = listing
        self.fail = set(fail)
        self.calls = []

    def __call__(self, cmd):
        self.calls.append(list(cmd))
        if cmd[0] == 'findmnt':
            value = self.mounts.get((cmd[3], cmd[4]), '')
            return subprocess.CompletedProcess(cmd, 0 if value else 1, value + '\n' if value else '', '')
        if cmd[0].endswith('efibootmgr'):
            if '--create' in cmd:
                code = 1 if 'create' in self.fail else 0
                return subprocess.CompletedProcess(cmd, code, self.listing, 'Could not prepare Boot variable' if code else '')
            if '--delete-bootnum' in cmd:
                bootnum = cmd[cmd.index('--bootnum') + 1]
                code = 1 if bootnum in self.fail else 0
                return subprocess.CompletedProcess(cmd, code, '', f'Boot{bootnum} not found' if code else '')
            return subprocess.CompletedProcess(cmd, 0, self.listing, '')
        assert False, 'RunMocked: unexpected command {}'.format(cmd)

    def efibootmgr_calls(self):
        return [c for c in self.calls if c[0].endswith('efibootmgr')]


@pytest.fixture
def run_mocked(monkeypatch):
    mocked = RunMocked()
    monkeypatch.setattr(linux, 'run', mocked)
    monkeypatch.setattr(linux, 'which', lambda cmd: '/usr/sbin/' + cmd)
    return mocked


@pytest.fixture
def boot_dir(tmp_path):
    boot = tmp_path / 'boot'
    boot.mkdir()
    (boot / f'vmlinuz-{VERSION}').write_bytes(b'kernel')
    (boot / f'initramfs-{VERSION}.img').write_bytes(b'initramfs')
    (boot / 'intel-uc.img').write_bytes(b'microcode')
    return boot
