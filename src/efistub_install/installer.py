from __future__ import annotations
import logging
import shutil
from typing import List

from efistub_install.errors import (
    BootEntryCreationError, BootEntryDeletionError, InstallError, NotPrivilegedError, ToolNotFoundError,
)
from efistub_install.models import BootConfig, BootEntryPlan, ProbedFacts
from efistub_install.plan import entry_request
from efistub_install.platforms.common import is_admin
from efistub_install.platforms.linux import EfiBootManager

log = logging.getLogger(__name__)


class Installer:
    """Applies a BootEntryPlan to the ESP and the firmware boot entries.

    Steps are sequential and nothing is rolled back: if a later step fails,
    files copied by an earlier one stay in place.
    """

    def __init__(self, manager: EfiBootManager | None = None) -> None:
        self.manager = manager or EfiBootManager()

    def preflight(self) -> None:
        if not self.manager.available():
            raise ToolNotFoundError('efibootmgr not found on PATH')
        if not is_admin():
            raise NotPrivilegedError('root privileges are required to write the ESP and boot entries')

    def copy_images(self, plan: BootEntryPlan) -> None:
        for src, dst in plan.files:
            try:
                if dst.exists():
                    log.info('removing old %s', dst)
                    dst.unlink()
                log.info('copying %s -> %s', src, dst)
                # the ESP is FAT: copy contents only, no permission bits
                shutil.copyfile(src, dst)
            except OSError as e:
                raise InstallError(f'cannot copy {src} to {dst}: {e.strerror or e}') from e

    def create_entry(self, config: BootConfig, facts: ProbedFacts, plan: BootEntryPlan) -> None:
        ok, msg = self.manager.create(entry_request(config, facts, plan))
        if not ok:
            raise BootEntryCreationError(f'efibootmgr failed to create the boot entry: {msg}')
        log.info(msg)

    def install(self, config: BootConfig, facts: ProbedFacts, plan: BootEntryPlan) -> None:
        self.preflight()
        self.copy_images(plan)
        self.create_entry(config, facts, plan)

    def remove_duplicates(self, label: str) -> List[str]:
        """Delete older entries carrying the same label as the new one.

        The new entry is taken to be the first one in BootOrder, which is
        where efibootmgr --create inserts it. Returns the deleted boot numbers.
        """
        info = self.manager.boot_info()
        keep = info.first_in_order
        if keep is None:
            raise BootEntryDeletionError('cannot read BootOrder, refusing to delete entries')
        wanted = label.casefold()
        deleted: List[str] = []
        for entry in info.entries.values():
            if entry.id == keep or entry.description.casefold() != wanted:
                continue
            ok, msg = self.manager.delete(entry.id)
            if not ok:
                raise BootEntryDeletionError(f'cannot delete Boot{entry.id}: {msg}')
            log.info(msg)
            deleted.append(entry.id)
        if not deleted:
            log.info('no duplicate entries labelled "%s"', label)
        return deleted
