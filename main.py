#!/usr/bin/env python3

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

import sys

from omarchy_hibernate.config import load_settings
from omarchy_hibernate.gui import run
from omarchy_hibernate.logger import setup_logging

setup_logging()
sys.exit(run(load_settings()))
