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

"""mkinitcpio HOOKS handling: the initramfs needs the 'resume' hook."""

import re

HOOKS_LINE = re.compile(r"^HOOKS=.*$", re.MULTILINE)
HOOKS_ARRAY = re.compile(r"^(HOOKS=\([^)]*)", re.MULTILINE)


def hooks_line(text):
    """First HOOKS= line, or None."""
    m = HOOKS_LINE.search(text)
    return m.group(0) if m else None


def has_resume_hook(text):
    return any("resume" in m.group(0) for m in HOOKS_LINE.finditer(text))


def inject_resume_hook(text):
    """Append 'resume' as the last hook of the HOOKS=(...) array."""
    line = hooks_line(text)
    if line is None or "resume" in line:
        return text
    return HOOKS_ARRAY.sub(r"\1 resume", text, count=1)
