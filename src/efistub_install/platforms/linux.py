from __future__ import annotations
import logging
import re
import shlex
from dataclasses import dataclass
from typing import List

from .common import run, which
from efistub_install.errors import ToolNotFoundError
from efistub_install.models import BootEntry, BootInfo

log = logging.getLogger(__name__)

ENTRY_RE = re.compile(r"^Boot(?P<id>[0-9A-Fa-f]{4})\*?\s+(?P<label>[^\t]*)")


def findmnt(column: str, target: str) -> str:
    """Return one column of the mount table for a device or mount point.

    An empty string means the target is not mounted or the column is unset.
    """
    try:
        cp = run(['findmnt', '--noheadings', '--output', column, target])
    except FileNotFoundError:
        raise ToolNotFoundError('findmnt not found on PATH')
    if cp.returncode != 0:
        return ''
    lines = cp.stdout.strip().splitlines()
    return lines[0].strip() if lines else ''


def parse_boot_info(text: str) -> BootInfo:
    info = BootInfo()
    for line in text.splitlines():
        if line.startswith('BootOrder:'):
            order = line.split(':', 1)[1].strip()
            info.boot_order = tuple(x for x in order.split(',') if x)
            continue
        m = ENTRY_RE.match(line)
        if m:
            bid = m.group('id')
            info.entries[bid] = BootEntry(id=bid, description=m.group('label').strip())
    return info


@dataclass(frozen=True)
class BootEntryRequest:
    disk: str
    part: int
    label: str
    loader: str
    unicode: str

    def argv(self, efibootmgr: str = 'efibootmgr') -> List[str]:
        return [
            efibootmgr, '--create',
            '--disk', self.disk,
            '--part', str(self.part),
            '--label', self.label,
            '--loader', self.loader,
            '--unicode', self.unicode,
        ]

    def command_line(self) -> str:
        return shlex.join(self.argv())


class EfiBootManager:
    def __init__(self) -> None:
        self.efibootmgr = which('efibootmgr')

    def available(self) -> bool:
        return self.efibootmgr is not None

    def boot_info(self) -> BootInfo:
        cp = run([self.efibootmgr or 'efibootmgr'])
        if cp.returncode != 0:
            log.warning('efibootmgr listing failed: %s', (cp.stderr or cp.stdout).strip())
        return parse_boot_info(cp.stdout)

    def create(self, request: BootEntryRequest) -> tuple[bool, str]:
        cp = run(request.argv(self.efibootmgr or 'efibootmgr'))
        if cp.returncode == 0:
            return True, 'Created boot entry: ' + request.label
        return False, (cp.stderr or cp.stdout).strip()

    def delete(self, entry_id: str) -> tuple[bool, str]:
        cp = run([self.efibootmgr or 'efibootmgr', '--bootnum', entry_id, '--delete-bootnum'])
        if cp.returncode == 0:
            return True, 'Deleted boot entry: Boot' + entry_id
        return False, (cp.stderr or cp.stdout).strip()
