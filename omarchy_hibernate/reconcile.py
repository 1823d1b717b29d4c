# Omarchy Hibernate – Enable hibernation on Omarchy with Btrfs and Limine
# Copyright (C) 2025 Chief Denis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Bring the system to a hibernation-ready state.

Creates a dedicated Btrfs subvolume and a swapfile sized to RAM, adds a
low-priority fstab record, injects the resume hook into mkinitcpio, writes
resume= and resume_offset= to the Limine defaults and refreshes the
initramfs with limine-update. Each step checks current state first, so
re-running only repeats the steps that are not done yet.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from omarchy_hibernate import auto_hibernate, fstab, hooks, limine, menu, power_button, system
from omarchy_hibernate.exceptions import CommandError, FatalError, HibernateError
from omarchy_hibernate.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ReconcileReport:
    applied: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    swap_offset: Optional[str] = None

    def did(self, action):
        self.applied.append(action)

    def skip(self, action):
        self.skipped.append(action)


def require_root(runner):
    if runner.dry_run:
        logger.info("Dry-run: skipping root requirement")
        return
    if not runner.is_root():
        raise FatalError("Run as root (try: sudo).")


def require_limine(settings):
    if not settings.limine_conf.is_file():
        raise FatalError(f"{settings.limine_conf} not found; Limine config is required.")
    if not settings.limine_defaults.is_file():
        raise FatalError(f"{settings.limine_defaults} not found; Limine defaults configuration is required.")


def require_btrfs_root(runner):
    fstype = system.get_root_fstype(runner)
    if fstype != "btrfs":
        raise FatalError(
            f"Root filesystem is {fstype}, but this tool only supports Btrfs filesystems. "
            "For other filesystems, you need a different hibernation setup approach "
            "with resume_offset configuration."
        )


def preflight(settings, runner, ram_bytes):
    logger.info("Running pre-flight checks")

    # RAM size plus a 10% buffer
    mountpoint = system.get_root_mountpoint(runner)
    available = system.get_available_bytes(mountpoint)
    required = ram_bytes + ram_bytes // 10
    if available < required:
        logger.warning("Low disk space detected")
        logger.info(f"  Available: {system.format_iec(available)}")
        logger.info(f"  Required:  {system.format_iec(required)}")
        raise FatalError(f"Insufficient disk space. Need at least {system.format_iec(required)} free.")
    logger.info(f"Disk space check: OK ({system.format_iec(available)} available)")

    has_pm, has_disk = system.kernel_supports_hibernation(settings)
    if not has_pm:
        raise FatalError(
            f"Kernel does not appear to support power management ({settings.power_state_path} not found)"
        )
    if not has_disk:
        raise FatalError(
            f"Kernel does not support hibernation (disk state not available in {settings.power_state_path})"
        )
    logger.info("Kernel hibernation support: OK")

    if not system.btrfs_mkswapfile_supported(runner):
        raise FatalError(
            "btrfs filesystem mkswapfile command not available. Update btrfs-progs to a newer version."
        )
    logger.info("Btrfs swapfile support: OK")


def make_swapfile(settings, runner, ram_bytes):
    logger.info(f"Creating swapfile of size {system.format_iec(ram_bytes)}")
    try:
        runner.execute(
            ["btrfs", "filesystem", "mkswapfile", "-s", f"{ram_bytes}B", settings.swapfile_path]
        )
    except CommandError as e:
        raise FatalError("Failed to create Btrfs swapfile") from e


def create_swapfile(settings, runner, ram_bytes, report):
    """First run: subvolume and swapfile must not exist yet."""
    if settings.subvol_path.exists():
        raise FatalError(f"{settings.subvol_path} already exists.")
    if settings.swapfile_path.exists():
        raise FatalError(f"{settings.swapfile_path} already exists.")

    if system.active_non_zram_swap(runner):
        raise FatalError("Detected active swap (non-zram).")

    logger.info(f"Creating Btrfs subvolume at {settings.subvol_path}")
    try:
        runner.execute(["btrfs", "subvolume", "create", settings.subvol_path])
    except CommandError as e:
        raise FatalError(f"Could not create Btrfs subvolume {settings.subvol_path}") from e
    report.did("subvolume")

    make_swapfile(settings, runner, ram_bytes)
    report.did("swapfile")


def update_swapfile(settings, runner, ram_bytes, report):
    """--update: recreate the swapfile when RAM size changed."""
    logger.info("Update mode enabled")
    swapfile = settings.swapfile_path
    if not swapfile.exists():
        raise FatalError(f"{swapfile} does not exist. Cannot update.")

    current = swapfile.stat().st_size
    if current == ram_bytes:
        logger.info(f"Swapfile size ({system.format_iec(current)}) already matches RAM size.")
        report.skip("swapfile")
        return

    logger.info(
        f"Swapfile size ({system.format_iec(current)}) does not match RAM size "
        f"({system.format_iec(ram_bytes)}). Will recreate."
    )
    logger.info("Turning off swap")
    runner.execute(["swapoff", swapfile])
    logger.info("Removing old swapfile")
    runner.remove(swapfile)
    make_swapfile(settings, runner, ram_bytes)
    report.did("swapfile")


def require_resume_generator(settings):
    generator = settings.resume_generator
    if not (generator.is_file() and os.access(generator, os.X_OK)):
        raise FatalError("systemd-hibernate-resume-generator missing; hibernation support required.")
    logger.info("Found systemd-hibernate-resume generator")


def enable_swap(settings, runner, report):
    if system.is_swap_active(runner, settings.swapfile_path):
        logger.info("Swap already active")
        report.skip("swapon")
        return
    logger.info("Enabling swap (priority 0)")
    runner.execute([settings.swapon, "-p", "0", settings.swapfile_path])
    report.did("swapon")


def ensure_fstab_entry(settings, runner, report):
    text = settings.fstab_path.read_text()
    if fstab.has_swapfile_entry(text, settings.swapfile_path):
        logger.info("fstab already contains this swapfile entry")
        report.skip("fstab")
        return
    runner.backup(settings.fstab_path)
    logger.info(f"Appending swap entry to {settings.fstab_path}")
    runner.write_text(settings.fstab_path, fstab.append_swapfile_entry(text, settings.swapfile_path))
    report.did("fstab")


def ensure_resume_hook(settings, runner, report):
    path = settings.hooks_conf_path
    text = path.read_text()
    if hooks.hooks_line(text) is None or hooks.has_resume_hook(text):
        logger.info("Resume hook already present or hooks not configured")
        report.skip("resume-hook")
        return
    runner.backup(path)
    logger.info("Injecting 'resume' into HOOKS")
    runner.write_text(path, hooks.inject_resume_hook(text))
    report.did("resume-hook")


def update_kernel_cmdline(settings, runner, device, offset, report):
    path = settings.limine_defaults
    if not path.is_file():
        raise FatalError(f"{path} not found")

    runner.backup(path)
    text = path.read_text()
    if limine.has_resume(text):
        logger.info("Resume parameters already present in kernel cmdline")

    patched = limine.set_resume_params(text, device, offset)
    if patched == text:
        logger.info("Kernel cmdline resume parameters already up to date")
        report.skip("kernel-cmdline")
        return
    runner.write_text(path, patched)
    logger.info(f"Set resume={device} resume_offset={offset} in kernel cmdline")
    report.did("kernel-cmdline")


def show_swap_status(settings, runner):
    if runner.dry_run:
        logger.info(f"Would show swap status with: {settings.swapon} --show")
        return
    logger.info("Swap status summary:")
    result = runner.run([settings.swapon, "--show"], check=False)
    for line in result.stdout.splitlines():
        logger.info(f"  {line}")


def setup_hibernation(settings, runner, update=False):
    """Run the whole setup. Raises FatalError on the first unmet precondition."""
    if runner.dry_run:
        logger.info("Dry-run mode: no changes will be made")
    report = ReconcileReport()

    require_root(runner)
    require_limine(settings)
    require_btrfs_root(runner)

    ram_bytes = system.get_ram_bytes(settings)
    preflight(settings, runner, ram_bytes)

    if update:
        update_swapfile(settings, runner, ram_bytes, report)
    else:
        create_swapfile(settings, runner, ram_bytes, report)

    require_resume_generator(settings)
    if not settings.hooks_conf_path.is_file():
        raise FatalError(f"{settings.hooks_conf_path} not found (required).")

    enable_swap(settings, runner, report)
    ensure_fstab_entry(settings, runner, report)
    ensure_resume_hook(settings, runner, report)

    logger.info("Calculating swapfile offset")
    if runner.dry_run and not settings.swapfile_path.exists():
        logger.info("Swapfile not created in dry-run; skipping offset and kernel cmdline update")
        report.skip("kernel-cmdline")
    else:
        offset = system.get_swapfile_offset(runner, settings.swapfile_path)
        report.swap_offset = offset
        logger.info(f"Swapfile offset: {offset}")
        logger.info(f"Resume device: {settings.resume_device}")
        logger.info("Updating kernel command line with resume parameters")
        update_kernel_cmdline(settings, runner, settings.resume_device, offset, report)

    logger.info("Rebuilding initramfs and updating bootloader")
    runner.execute([settings.limine_update])

    show_swap_status(settings, runner)
    logger.info("Hibernation setup complete!")
    return report


FOLLOW_UPS = [
    ("Add hibernate option to Omarchy system menu?", "menu"),
    ("Configure automatic hibernation (suspend-then-hibernate, low battery)?", "auto"),
    ("Configure power button to trigger hibernation?", "power-button"),
]


def run_follow_up(name, settings, runner, environ=None):
    if name == "menu":
        _, home = auto_hibernate.invoking_user_home(environ)
        menu.add_hibernate_to_menu(settings, runner, home=home)
    elif name == "auto":
        auto_hibernate.configure_auto_hibernate(settings, runner, environ)
    elif name == "power-button":
        power_button.configure_power_button(settings, runner)
    else:
        raise ValueError(f"Unknown follow-up '{name}'")


def run_follow_ups(settings, runner, ask, environ=None):
    """
    Offer the optional integrations after a successful setup.

    A failing integration is reported and does not undo the setup.
    Returns the names of the integrations that were applied.
    """
    done = []
    for question, name in FOLLOW_UPS:
        if not ask(question):
            logger.info(f"Skipped. You can run `omarchy-hibernate {name}` later.")
            continue
        try:
            run_follow_up(name, settings, runner, environ)
        except HibernateError as e:
            logger.warning(f"{name} setup failed: {e}. You can run `omarchy-hibernate {name}` later.")
            continue
        done.append(name)
    return done
