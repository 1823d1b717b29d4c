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

"""Re-check every configured fact against the live system."""

import os
from dataclasses import dataclass, field

from omarchy_hibernate import fstab, hooks, limine, system
from omarchy_hibernate.exceptions import FatalError
from omarchy_hibernate.logger import get_logger

logger = get_logger(__name__)

OK = "ok"
WARNING = "warning"
ERROR = "error"

SYMBOLS = {OK: "✓", WARNING: "⚠", ERROR: "✗"}


@dataclass
class CheckResult:
    name: str
    status: str
    message: str
    details: list = field(default_factory=list)


@dataclass
class VerificationReport:
    results: list = field(default_factory=list)

    def add(self, name, status, message, *details):
        result = CheckResult(name, status, message, list(details))
        self.results.append(result)
        return result

    @property
    def errors(self):
        return sum(1 for r in self.results if r.status == ERROR)

    @property
    def warnings(self):
        return sum(1 for r in self.results if r.status == WARNING)

    @property
    def passed(self):
        return self.errors == 0


def check_subvolume(settings, report):
    if settings.subvol_path.is_dir():
        report.add("subvolume", OK, f"Swap subvolume exists: {settings.subvol_path}")
    else:
        report.add("subvolume", ERROR, f"Swap subvolume NOT found: {settings.subvol_path}")


def check_swapfile(settings, report):
    swapfile = settings.swapfile_path
    if not swapfile.is_file():
        report.add("swapfile", ERROR, f"Swapfile NOT found: {swapfile}")
        return

    size = swapfile.stat().st_size
    ram = system.get_ram_bytes(settings)
    details = [f"Size: {system.format_iec(size)}", f"RAM:  {system.format_iec(ram)}"]
    report.add("swapfile", OK, f"Swapfile exists: {swapfile}", *details)
    if size != ram:
        report.add(
            "swapfile-size", WARNING,
            "Swapfile size doesn't match RAM size",
            "Run with --update to fix",
        )


def check_swap_active(settings, runner, report):
    if system.is_swap_active(runner, settings.swapfile_path):
        report.add("swap-active", OK, "Swap is active")
    else:
        report.add(
            "swap-active", ERROR, "Swap is NOT active",
            f"Run: sudo swapon {settings.swapfile_path}",
        )


def check_fstab(settings, report):
    try:
        text = settings.fstab_path.read_text()
    except OSError:
        text = ""
    if fstab.has_swapfile_entry(text, settings.swapfile_path):
        report.add("fstab", OK, "fstab entry exists")
    else:
        report.add("fstab", ERROR, "fstab entry NOT found")


def check_resume_hook(settings, report):
    try:
        text = settings.hooks_conf_path.read_text()
    except OSError:
        text = ""
    if hooks.has_resume_hook(text):
        report.add("resume-hook", OK, "Resume hook configured in mkinitcpio")
    else:
        report.add("resume-hook", ERROR, f"Resume hook NOT found in {settings.hooks_conf_path}")


def check_kernel_resume(settings, runner, report):
    runtime = system.get_runtime_resume(settings)
    if runtime is None:
        report.add(
            "kernel-resume", ERROR,
            f"{settings.power_resume_path} or {settings.power_resume_offset_path} not available",
        )
        return

    resume, offset = runtime
    details = [f"{settings.power_resume_path}: {resume}", f"{settings.power_resume_offset_path}: {offset}"]
    if resume == "0:0" or offset == "0":
        report.add("kernel-resume", ERROR, "Kernel resume parameters NOT configured at runtime", *details)
        return
    report.add("kernel-resume", OK, "Kernel resume parameters active at runtime", *details)

    if settings.swapfile_path.is_file():
        try:
            actual = system.get_swapfile_offset(runner, settings.swapfile_path)
        except FatalError:
            actual = None
        if actual:
            if actual != offset:
                report.add(
                    "resume-offset", ERROR, "resume_offset mismatch!",
                    f"Runtime:    {offset}",
                    f"Swapfile:   {actual}",
                    "Run: sudo omarchy-hibernate setup --update",
                )
            else:
                report.add("resume-offset", OK, "resume_offset matches actual swapfile offset")

    # Persistence across reboots
    if settings.limine_defaults.is_file():
        if limine.has_resume_params(settings.limine_defaults.read_text()):
            report.add(
                "resume-persisted", OK,
                f"Resume parameters also configured in {settings.limine_defaults} (persistent)",
            )
        else:
            report.add(
                "resume-persisted", WARNING,
                f"Resume parameters NOT in {settings.limine_defaults}",
                "They work now but may not survive a reboot",
                "Re-run setup to add them permanently",
            )


def check_resume_generator(settings, report):
    generator = settings.resume_generator
    if generator.is_file() and os.access(generator, os.X_OK):
        report.add("resume-generator", OK, "systemd hibernate-resume generator present")
    else:
        report.add("resume-generator", ERROR, "systemd hibernate-resume generator NOT found")


def collect(settings, runner):
    """Run all checks without logging. Used by the GUI."""
    report = VerificationReport()
    check_subvolume(settings, report)
    check_swapfile(settings, report)
    check_swap_active(settings, runner, report)
    check_fstab(settings, report)
    check_resume_hook(settings, report)
    check_kernel_resume(settings, runner, report)
    check_resume_generator(settings, report)
    return report


def log_report(report):
    for result in report.results:
        line = f"{SYMBOLS[result.status]} {result.message}"
        # failed checks stay on stdout; only the summary goes to stderr
        if result.status == WARNING:
            logger.warning(line)
        else:
            logger.info(line)
        for detail in result.details:
            logger.info(f"  {detail}")

    if report.passed:
        logger.info("✓ Verification PASSED")
        if report.warnings:
            logger.info(f"  ({report.warnings} warning(s))")
        logger.info("Hibernation is properly configured!")
        logger.info("Test with: systemctl hibernate")
    else:
        logger.error(f"✗ Verification FAILED: {report.errors} error(s), {report.warnings} warning(s)")
        logger.info("Please fix the errors above or re-run the setup.")


def verify(settings, runner):
    """Log every check and return the report; report.passed decides the exit code."""
    logger.info("Verifying hibernation configuration")
    report = collect(settings, runner)
    log_report(report)
    return report
