from __future__ import annotations
from typing import List

from efistub_install.models import BootConfig, BootEntryPlan, ProbedFacts
from efistub_install.platforms.linux import BootEntryRequest


def entry_request(config: BootConfig, facts: ProbedFacts, plan: BootEntryPlan) -> BootEntryRequest:
    return BootEntryRequest(
        disk=config.efi_drive,
        part=config.efi_part_no,
        label=facts.boot_label,
        loader=plan.loader_path,
        unicode=plan.unicode_parameters,
    )


def render_command(config: BootConfig, facts: ProbedFacts, plan: BootEntryPlan) -> str:
    return entry_request(config, facts, plan).command_line()


def format_plan(config: BootConfig, facts: ProbedFacts, plan: BootEntryPlan) -> str:
    """Text shown to the operator before anything is changed."""
    lines: List[str] = [
        f"Kernel version:   {facts.kernel_version}",
        f"Boot label:       {facts.boot_label}",
        f"EFI partition:    {config.efi_partition} on {facts.esp_mount_point}",
        f"Root PARTUUID:    {facts.root_partuuid} ({facts.root_fstype})",
        "",
        "Files to copy:",
    ]
    for src, dst in plan.files:
        lines.append(f"  {src} -> {dst}")
    lines += ["", "Boot entry command:", "  " + render_command(config, facts, plan)]
    return "\n".join(lines)
