class EfiStubError(Exception):
    """Base class for every failure that ends a run.

    Lower layers raise these; only the CLI entry point turns them into a
    message on stderr and a process exit status.
    """
    exit_code = 1


class UsageError(EfiStubError):
    """Missing or malformed command-line input."""


class NotMountedError(EfiStubError):
    """The target EFI system partition is not mounted."""


class ResolutionError(EfiStubError):
    """A required fact (kernel version, label, root identity) is unknown."""


class NotFoundError(EfiStubError):
    """A kernel, microcode or initramfs image is missing."""


class NotPrivilegedError(EfiStubError):
    """The effective user cannot modify the ESP or the boot entries."""


class ToolNotFoundError(EfiStubError):
    """A required external program is not on PATH."""


class InstallError(EfiStubError):
    """A kernel or initrd image could not be written to the ESP."""


class BootEntryCreationError(EfiStubError):
    """efibootmgr refused to create the new boot entry."""


class BootEntryDeletionError(EfiStubError):
    """An older duplicate boot entry could not be deleted."""


class ConfirmationError(EfiStubError):
    """No answer could be read from the operator."""
