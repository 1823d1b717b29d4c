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
Automatic hibernation:
  - suspend-then-hibernate after HibernateDelaySec of sleep
  - lid close uses suspend-then-hibernate
  - idle (hypridle) uses suspend-then-hibernate
  - hibernate when the battery runs low
"""

import os
import pwd
import sys
from pathlib import Path

from omarchy_hibernate import battery_monitor
from omarchy_hibernate.exceptions import FatalError
from omarchy_hibernate.logger import get_logger

logger = get_logger(__name__)

SLEEP_CONF_NAME = "10-hibernate.conf"
LID_CONF_NAME = "10-lid-hibernate.conf"
SUSPEND_THEN_HIBERNATE = "systemctl suspend-then-hibernate"


def sleep_conf(delay):
    return (
        f"# Hibernate after being suspended for {delay}\n"
        "[Sleep]\n"
        "AllowSuspendThenHibernate=yes\n"
        f"HibernateDelaySec={delay}\n"
    )


def lid_conf():
    return (
        "# Use suspend-then-hibernate when lid is closed\n"
        "# This ensures the hibernate delay triggers even when closing the lid\n"
        "[Login]\n"
        "HandleLidSwitch=suspend-then-hibernate\n"
        "HandleLidSwitchExternalPower=suspend-then-hibernate\n"
    )


def monitor_service(settings, device, python=None):
    python = python or sys.executable
    exec_start = (
        f"{python} -m omarchy_hibernate battery-monitor --device {device} "
        f"--threshold {settings.battery_threshold} --interval {settings.battery_check_interval}"
    )
    return (
        "[Unit]\n"
        "Description=Battery Hibernate Monitor\n"
        "After=multi-user.target\n"
        "StartLimitIntervalSec=0\n"
        "\n"
        "[Service]\n"
        "Type=simple\n"
        f"ExecStart={exec_start}\n"
        "Restart=always\n"
        "RestartSec=10\n"
        "\n"
        "[Install]\n"
        "WantedBy=multi-user.target\n"
    )


def hypridle_listener(timeout):
    return (
        "\n"
        "listener {\n"
        f"    timeout = {timeout}                                         # {timeout // 60}min\n"
        f"    on-timeout = {SUSPEND_THEN_HIBERNATE}         # suspend, then hibernate later\n"
        "}\n"
    )


def has_suspend_then_hibernate(text):
    return SUSPEND_THEN_HIBERNATE in text


def invoking_user_home(environ=None):
    """Home of the user behind sudo or pkexec, or our own home. Returns (user, home)."""
    environ = os.environ if environ is None else environ
    sudo_user = environ.get("SUDO_USER")
    if sudo_user:
        return sudo_user, Path(pwd.getpwnam(sudo_user).pw_dir)
    pkexec_uid = environ.get("PKEXEC_UID")
    if pkexec_uid:
        entry = pwd.getpwuid(int(pkexec_uid))
        return entry.pw_name, Path(entry.pw_dir)
    return None, Path(environ.get("HOME") or Path.home())


def configure_sleep(settings, runner):
    logger.info(f"Configuring suspend-then-hibernate after {settings.hibernate_delay} of sleep")
    path = settings.sleep_conf_dir / SLEEP_CONF_NAME
    runner.write_text(path, sleep_conf(settings.hibernate_delay))
    logger.info(f"Created {path}")


def configure_battery_monitor(settings, runner):
    """Write the monitor unit. Returns False when upower is unavailable."""
    logger.info(f"Configuring hibernation on low battery (<{settings.battery_threshold}%)")
    if not runner.which("upower"):
        logger.warning("upower not found. Skipping battery hibernation setup.")
        logger.info("Install upower package if you want low battery hibernation.")
        return False

    logger.info("Auto-detecting battery device")
    device = battery_monitor.find_battery_device(runner)
    if device is None:
        logger.warning("No battery device found. Low battery hibernation will be disabled.")
        logger.info("This is normal for desktop systems without a battery.")
        device = settings.fallback_battery_device
        logger.info(f"Using fallback path (may be inactive): {device}")

    path = settings.systemd_unit_dir / settings.battery_service_name
    runner.write_text(path, monitor_service(settings, device))
    logger.info(f"Created {path}")
    return True


def configure_lid(settings, runner):
    logger.info("Configuring lid switch to use suspend-then-hibernate")
    path = settings.logind_conf_dir / LID_CONF_NAME
    runner.write_text(path, lid_conf())
    logger.info(f"Created {path}")


def configure_hypridle(settings, runner, environ=None):
    """Append an idle listener to hypridle.conf. Returns True when changed."""
    logger.info("Updating hypridle configuration to use suspend-then-hibernate")
    user, home = invoking_user_home(environ)
    path = settings.hypridle_path(home)

    if not path.is_file():
        logger.warning(f"hypridle.conf not found at {path}")
        logger.info("Skipping hypridle configuration. You can manually add:")
        for line in hypridle_listener(settings.idle_timeout).strip().splitlines():
            logger.info(f"  {line.split('#')[0].rstrip()}")
        return False

    text = path.read_text()
    if has_suspend_then_hibernate(text):
        logger.info("hypridle.conf already has suspend-then-hibernate configured")
        return False

    runner.write_text(path, text + hypridle_listener(settings.idle_timeout))
    if user:
        runner.chown(path, user)
    logger.info("Added suspend-then-hibernate listener to hypridle.conf")
    return True


def enable_battery_monitor(settings, runner):
    logger.info("Enabling battery hibernate monitor service")
    runner.execute(["systemctl", "enable", settings.battery_service_name])
    # May fail on first run and work after reboot
    result = runner.execute(["systemctl", "start", settings.battery_service_name], check=False)
    if result.returncode != 0:
        logger.warning("Failed to start battery monitor (may need reboot)")


def configure_auto_hibernate(settings, runner, environ=None):
    if not runner.dry_run and not runner.is_root():
        raise FatalError("Run as root (try: sudo)")

    configure_sleep(settings, runner)
    has_upower = configure_battery_monitor(settings, runner)
    configure_lid(settings, runner)
    configure_hypridle(settings, runner, environ)

    runner.execute(["systemctl", "daemon-reload"])
    if has_upower:
        enable_battery_monitor(settings, runner)

    logger.info("Automatic hibernation configured successfully!")
    logger.info(f"  - Suspend-then-hibernate: After {settings.hibernate_delay} of sleep")
    logger.info("  - Lid close behavior: suspend-then-hibernate")
    if has_upower:
        logger.info(f"  - Low battery hibernate: When battery drops below {settings.battery_threshold}%")
        logger.info(f"To check battery monitor status: systemctl status {settings.battery_service_name}")
    logger.info(f"  - Idle suspend: After {settings.idle_timeout // 60} minutes of inactivity")
    logger.info("To restart hypridle: omarchy-restart-hypridle")
    return has_upower
