from __future__ import annotations
import argparse
import enum
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from efistub_install.errors import ConfirmationError, EfiStubError, NotFoundError, UsageError
from efistub_install.installer import Installer
from efistub_install.models import DEFAULT_MICROCODE, BootConfig, BootEntryPlan
from efistub_install.plan import format_plan
from efistub_install.probe import BOOT_DIR, EnvironmentProber

log = logging.getLogger(__name__)


class Confirmation(enum.Enum):
    CONFIRMED = 'confirmed'
    DECLINED = 'declined'
    INPUT_ERROR = 'input-error'


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f'invalid partition number: {value!r}')
    if number < 1:
        raise argparse.ArgumentTypeError(f'partition number must be positive: {value!r}')
    return number


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(prog='efistub-install',
                description='Copy a kernel to the EFI system partition and register an EFISTUB boot entry')
    p.add_argument('-d', '--efi-drive', required=True, help='Disk holding the EFI system partition, e.g. /dev/sda')
    p.add_argument('-p', '--efi-part-no', required=True, type=_positive_int,
                   help='Partition number of the EFI system partition on that disk')
    p.add_argument('-k', '--kernel-ver', help='Kernel version (default: target of /usr/src/linux)')
    p.add_argument('-l', '--boot-label', help='Boot entry label (default: NAME from /etc/os-release + version)')
    p.add_argument('-m', '--microcode',
                   help=f'Microcode image in /boot, must exist when given (default: {DEFAULT_MICROCODE} if present)')
    p.add_argument('-r', '--root-flags', help='rootflags= value (default: current mount options of /)')
    p.add_argument('-u', '--kernel-parameters', help='Extra kernel parameters appended to the defaults')
    p.add_argument('-v', '--verbose', action='store_true', help='Log every external command')
    return p


def resolve_config(args: argparse.Namespace, boot_dir: Path = BOOT_DIR) -> BootConfig:
    if args.microcode and not (Path(boot_dir) / args.microcode).is_file():
        raise NotFoundError(f'microcode image {Path(boot_dir) / args.microcode} not found')
    return BootConfig(
        efi_drive=args.efi_drive,
        efi_part_no=args.efi_part_no,
        kernel_version=args.kernel_ver,
        boot_label=args.boot_label,
        microcode=args.microcode or DEFAULT_MICROCODE,
        microcode_explicit=bool(args.microcode),
        root_flags=args.root_flags,
        kernel_parameters=args.kernel_parameters,
    )


def confirm(prompt: str, stream: Optional[TextIO] = None) -> Confirmation:
    stream = stream or sys.stdin
    print(f'{prompt} Type "yes" to continue: ', end='', flush=True)
    try:
        answer = stream.readline()
    except (OSError, UnicodeDecodeError) as e:
        log.debug('reading answer failed: %s', e)
        return Confirmation.INPUT_ERROR
    if not answer:
        return Confirmation.INPUT_ERROR
    return Confirmation.CONFIRMED if answer.strip() == 'yes' else Confirmation.DECLINED


def _confirmed(prompt: str, stream: Optional[TextIO]) -> bool:
    result = confirm(prompt, stream)
    if result is Confirmation.INPUT_ERROR:
        raise ConfirmationError('no answer read from standard input')
    if result is Confirmation.DECLINED:
        print('Aborted, nothing changed.')
        return False
    return True


def run_cli(argv: List[str], stdin: Optional[TextIO] = None, boot_dir: Path = BOOT_DIR,
            installer: Optional[Installer] = None) -> int:
    parser = build_parser()
    if not argv:
        parser.print_help(sys.stderr)
        return 1
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        parser.print_help(sys.stderr)
        print(f'error: {e}', file=sys.stderr)
        return e.exit_code
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = resolve_config(args, boot_dir)
        prober = EnvironmentProber(config, boot_dir=boot_dir)
        facts = prober.probe()
        plan = BootEntryPlan.build(config, facts, boot_dir)

        print(format_plan(config, facts, plan))
        if not _confirmed('Create this boot entry?', stdin):
            return 0

        installer = installer or Installer()
        installer.install(config, facts, plan)
        print(f'Boot entry "{facts.boot_label}" created.')

        if not _confirmed(f'Delete older boot entries labelled "{facts.boot_label}"?', stdin):
            return 0
        deleted = installer.remove_duplicates(facts.boot_label)
        print(f'Removed {len(deleted)} duplicate boot entries.')
    except EfiStubError as e:
        print(f'error: {e}', file=sys.stderr)
        return e.exit_code
    return 0
