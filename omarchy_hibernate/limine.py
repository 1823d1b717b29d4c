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
Kernel command line persistence in /etc/default/limine.

limine-update rebuilds the boot entries from KERNEL_CMDLINE[default], so the
resume parameters live on a separate `KERNEL_CMDLINE[default]+="..."` line
that survives upstream edits to the base line.
"""

import re

from omarchy_hibernate.exceptions import EditError

RESUME_TOKEN = re.compile(r' resume=[^ "]*')
RESUME_OFFSET_TOKEN = re.compile(r' resume_offset=[^ "]*')
APPEND_LINE = re.compile(r'^(KERNEL_CMDLINE\[default\]\+=.*)"', re.MULTILINE)
BASE_LINE = re.compile(r'^KERNEL_CMDLINE\[default\]=.*$', re.MULTILINE)


def has_resume(text):
    return "resume=" in text


def has_resume_params(text):
    return "resume=" in text and "resume_offset=" in text


def strip_resume_params(text):
    text = RESUME_TOKEN.sub("", text)
    return RESUME_OFFSET_TOKEN.sub("", text)


def set_resume_params(text, device, offset):
    """
    Return text with exactly one ` resume=<device> resume_offset=<offset>` pair.

    Old values are stripped wherever they appear, then the pair is appended
    to the existing += line, or a new += line is added below the base line.
    """
    params = f" resume={device} resume_offset={offset}"
    text = strip_resume_params(text)

    if APPEND_LINE.search(text):
        return APPEND_LINE.sub(lambda m: f'{m.group(1)}{params}"', text)

    if not BASE_LINE.search(text):
        raise EditError("No KERNEL_CMDLINE[default] line to attach resume parameters to")

    return BASE_LINE.sub(lambda m: f'{m.group(0)}\nKERNEL_CMDLINE[default]+="{params}"', text)
