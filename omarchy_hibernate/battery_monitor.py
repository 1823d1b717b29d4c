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

"""Hibernate when the battery drops below a threshold while discharging."""

import re
import time

from omarchy_hibernate.logger import get_logger

logger = get_logger(__name__)


def parse_upower_info(output):
    """
    Pick the interesting fields out of `upower -i <device>`.

    Returns a dict with 'native-path', 'state' and 'percentage' (int, the
    integer part of the reported value) when present.
    """
    info = {}
    for line in output.splitlines():
        key, sep, value = line.strip().partition(":")
        if not sep:
            continue
        value = value.strip()
        if key == "native-path":
            info["native-path"] = value
        elif key == "state":
            info["state"] = value
        elif key == "percentage":
            # "4.5%" or, under a comma-decimal locale, "4,5%"
            match = re.match(r"\d+", value)
            if match:
                info["percentage"] = int(match.group())
    return info


def battery_info(runner, device):
    result = runner.run(["upower", "-i", device], check=False)
    if result.returncode != 0:
        return {}
    return parse_upower_info(result.stdout)


def find_battery_device(runner):
    """First upower battery with a real native-path, or None."""
    result = runner.run(["upower", "-e"], check=False)
    if result.returncode != 0:
        return None
    for device in result.stdout.split():
        if "battery" not in device:
            continue
        native_path = battery_info(runner, device).get("native-path")
        if native_path and native_path != "(null)":
            logger.info(f"Found battery device: {device} (native: {native_path})")
            return device
    return None


def should_hibernate(info, threshold):
    return (
        info.get("state") == "discharging"
        and info.get("percentage") is not None
        and info["percentage"] < threshold
    )


def monitor(runner, device, threshold=5, interval=60, sleep=time.sleep, max_checks=None):
    """
    Poll the battery until it is discharging below threshold, then hibernate.

    Unreadable battery info is retried on the next poll. max_checks bounds
    the loop for callers that do not want to run forever.
    """
    logger.info(f"Monitoring {device}: hibernate below {threshold}% while discharging")
    checks = 0
    while max_checks is None or checks < max_checks:
        checks += 1
        info = battery_info(runner, device)
        if should_hibernate(info, threshold):
            logger.warning(f"Battery at {info['percentage']}%, hibernating now")
            runner.execute(["systemctl", "hibernate"])
            return True
        sleep(interval)
    return False
