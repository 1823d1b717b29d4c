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
Paths and tunables for the hibernation setup.

Every path can be overridden through an OMARCHY_HIBERNATE_* environment
variable (e.g. OMARCHY_HIBERNATE_SWAPFILE_PATH). Dry-run mode also honours
the plain DRY_RUN variable.
"""

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DRY_RUN_VALUES = {"1", "true", "TRUE", "yes", "YES", "on", "ON"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="OMARCHY_HIBERNATE_",
        populate_by_name=True,
        extra="ignore",
    )

    dry_run: bool = Field(
        default=False,
        validation_alias=AliasChoices("DRY_RUN", "OMARCHY_HIBERNATE_DRY_RUN", "dry_run"),
    )

    # Swap provisioning
    subvol_path: Path = Path("/swap")
    swapfile_path: Path = Path("/swap/swapfile")
    fstab_path: Path = Path("/etc/fstab")
    resume_device: str = "/dev/mapper/root"

    # Boot chain
    hooks_conf_path: Path = Path("/etc/mkinitcpio.conf.d/omarchy_hooks.conf")
    limine_defaults: Path = Path("/etc/default/limine")
    limine_conf: Path = Path("/boot/EFI/limine/limine.conf")
    limine_update: str = "/usr/bin/limine-update"
    resume_generator: Path = Path(
        "/usr/lib/systemd/system-generators/systemd-hibernate-resume-generator"
    )
    swapon: str = "/sbin/swapon"

    # Kernel interfaces
    meminfo_path: Path = Path("/proc/meminfo")
    cmdline_path: Path = Path("/proc/cmdline")
    power_state_path: Path = Path("/sys/power/state")
    power_resume_path: Path = Path("/sys/power/resume")
    power_resume_offset_path: Path = Path("/sys/power/resume_offset")

    # systemd policy
    logind_conf: Path = Path("/etc/systemd/logind.conf")
    logind_conf_dir: Path = Path("/etc/systemd/logind.conf.d")
    sleep_conf_dir: Path = Path("/etc/systemd/sleep.conf.d")
    systemd_unit_dir: Path = Path("/etc/systemd/system")
    battery_service_name: str = "battery-hibernate-monitor.service"
    hibernate_delay: str = "30min"
    idle_timeout: int = 600

    # Battery monitor
    battery_threshold: int = 5
    battery_check_interval: int = 60
    fallback_battery_device: str = "/org/freedesktop/UPower/devices/battery_BAT1"

    # Per-user files, resolved against the invoking user's home when unset
    menu_file: Optional[Path] = None
    hypridle_conf: Optional[Path] = None

    @field_validator("dry_run", mode="before")
    @classmethod
    def _parse_dry_run(cls, value):
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value) in DRY_RUN_VALUES

    def menu_path(self, home: Path) -> Path:
        if self.menu_file is not None:
            return self.menu_file
        return home / ".local" / "share" / "omarchy" / "bin" / "omarchy-menu"

    def hypridle_path(self, home: Path) -> Path:
        if self.hypridle_conf is not None:
            return self.hypridle_conf
        return home / ".config" / "hypr" / "hypridle.conf"


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, with explicit overrides winning."""
    return Settings(**overrides)
