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

"""/etc/fstab record for the swapfile."""

FSTAB_COMMENT = "# Swapfile (Btrfs) for hibernation support"


def swapfile_entry(swapfile):
    # pri=0 keeps zram (higher priority) in front for everyday swapping
    return f"{swapfile} none swap defaults,pri=0 0 0"


def has_swapfile_entry(text, swapfile):
    return str(swapfile) in text


def swapfile_block(swapfile):
    """The text appended to fstab: blank line, comment, entry."""
    return f"\n{FSTAB_COMMENT}\n{swapfile_entry(swapfile)}\n"


def append_swapfile_entry(text, swapfile):
    if has_swapfile_entry(text, swapfile):
        return text
    return text + swapfile_block(swapfile)
