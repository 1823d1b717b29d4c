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
Exception hierarchy.

    HibernateError (base)
    ├── FatalError   : a precondition failed, stop before touching anything else
    ├── CommandError : a system command exited non-zero
    └── EditError    : a config file is missing the line we need to patch

Only the CLI and the GUI catch HibernateError; everything else propagates.
"""


class HibernateError(Exception):
    """Base exception for all hibernation setup errors."""
    pass


class FatalError(HibernateError):
    """A required file, tool or system state is missing."""
    pass


class CommandError(HibernateError):
    """A shelled-out command failed."""

    def __init__(self, argv, returncode, stderr=""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr or ""
        message = f"{' '.join(self.argv)} exited with status {returncode}"
        if self.stderr.strip():
            message += f": {self.stderr.strip()}"
        super().__init__(message)


class EditError(HibernateError):
    """The text to patch does not have the expected shape."""
    pass
