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
Make the physical power button hibernate instead of being ignored.

Omarchy ships logind.conf with HandlePowerKey=ignore. To revert, set it
back to ignore (or poweroff, suspend, ...) and run
`systemctl kill -s HUP systemd-logind`.
"""

import re

from omarchy_hibernate.exceptions import FatalError
from omarchy_hibernate.logger import get_logger

logger = get_logger(__name__)

POWER_KEY_IGNORE = re.compile(r"^HandlePowerKey=ignore", re.MULTILINE)


def set_power_key_hibernate(text):
    return POWER_KEY_IGNORE.sub("HandlePowerKey=hibernate", text)


def reload_logind(runner):
    # HUP re-reads the config without killing user sessions
    runner.execute(["systemctl", "kill", "-s", "HUP", "systemd-logind"])


def configure_power_button(settings, runner):
    """Returns True when logind.conf was changed."""
    if not runner.dry_run and not runner.is_root():
        raise FatalError("Run as root (try: sudo)")

    conf = settings.logind_conf
    if not conf.is_file():
        raise FatalError(f"{conf} not found")

    logger.info("Configuring power button to trigger hibernation")
    runner.backup(conf)

    text = conf.read_text()
    patched = set_power_key_hibernate(text)
    if patched == text:
        logger.warning(f"No 'HandlePowerKey=ignore' line in {conf}; left unchanged")
    else:
        runner.write_text(conf, patched)
        logger.info("Updated power button configuration")

    logger.info("Reloading systemd-logind configuration")
    reload_logind(runner)

    logger.info("Power button now configured to trigger hibernation!")
    logger.info(f"To change this back, edit {conf} and set HandlePowerKey=ignore, "
                "then run: sudo systemctl kill -s HUP systemd-logind")
    return patched != text
