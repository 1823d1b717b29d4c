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

"""Add a Hibernate entry to the Omarchy system menu, right after Suspend."""

import re
from pathlib import Path

from omarchy_hibernate.exceptions import EditError, FatalError
from omarchy_hibernate.logger import get_logger

logger = get_logger(__name__)

HIBERNATE_ICON = "\U000f04b2"
# The menu script joins options with a literal backslash-n
HIBERNATE_OPTION = "\\n" + HIBERNATE_ICON + "  Hibernate"
HIBERNATE_ARM = "  *Hibernate*) systemctl hibernate ;;"

CASE_LINE = re.compile(r'(  case \$\(menu "System" ".*Suspend)')
SUSPEND_ARM = re.compile(r'\*Suspend\*\) systemctl suspend ;;')


def add_hibernate_entry(text):
    """
    Patch show_system_menu() so the System menu offers Hibernate.

    Only the body of show_system_menu() (up to the first closing brace in
    column 0) is touched.
    """
    out = []
    in_menu = False
    option_added = arm_added = False
    for line in text.splitlines(keepends=True):
        if not in_menu and "show_system_menu() {" in line:
            in_menu = True
            start = True
        else:
            start = False

        if in_menu:
            patched, n = CASE_LINE.subn(lambda m: m.group(1) + HIBERNATE_OPTION, line, count=1)
            if n:
                option_added = True
                line = patched
            out.append(line)
            if SUSPEND_ARM.search(line):
                if not line.endswith("\n"):
                    out[-1] = line + "\n"
                out.append(HIBERNATE_ARM + "\n")
                arm_added = True
            if not start and line.rstrip("\n") == "}":
                in_menu = False
        else:
            out.append(line)

    if not (option_added and arm_added):
        raise EditError("Suspend entry not found in show_system_menu")
    return "".join(out)


def add_hibernate_to_menu(settings, runner, home=None):
    """Returns True when the menu was changed, False when Hibernate was already there."""
    menu_file = settings.menu_path(Path(home) if home else Path.home())

    if not menu_file.is_file():
        raise FatalError(f"Menu file not found: {menu_file}")

    text = menu_file.read_text()
    if "Hibernate" in text:
        logger.info("Hibernate option already exists in the menu")
        return False

    if "show_system_menu()" not in text:
        raise FatalError(f"show_system_menu function not found in {menu_file}")

    patched = add_hibernate_entry(text)

    backup = runner.backup(menu_file)
    logger.info("Adding Hibernate option to system menu")
    runner.write_text(menu_file, patched)

    logger.info("Hibernate option successfully added to system menu")
    logger.info(f"Backup saved to: {backup}")
    logger.info("Open the System menu and select Hibernate")
    return True
