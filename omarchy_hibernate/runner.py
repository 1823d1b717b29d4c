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

"""Command execution and file mutation, with dry-run support."""

import os
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

from omarchy_hibernate.exceptions import CommandError
from omarchy_hibernate.logger import get_logger

logger = get_logger(__name__)


def backup_name(path: Path, now: datetime) -> Path:
    """Timestamped sibling used for backups: <file>.YYYYmmddHHMMSS.bak"""
    return path.with_name(f"{path.name}.{now.strftime('%Y%m%d%H%M%S')}.bak")


class Runner:
    """
    Runs system commands and edits files.

    Read-only probes go through run(). Anything that changes the system goes
    through execute() or the file helpers, which only log in dry-run mode.
    """

    def __init__(self, dry_run=False, clock=datetime.now):
        self.dry_run = dry_run
        self.clock = clock

    def run(self, argv, check=True, timeout=None) -> subprocess.CompletedProcess:
        argv = [str(a) for a in argv]
        try:
            result = subprocess.run(argv, capture_output=True, text=True, timeout=timeout)
        except FileNotFoundError as e:
            if check:
                raise CommandError(argv, 127, str(e)) from e
            return subprocess.CompletedProcess(argv, 127, "", str(e))
        if check and result.returncode != 0:
            raise CommandError(argv, result.returncode, result.stderr)
        return result

    def execute(self, argv, check=True) -> subprocess.CompletedProcess:
        argv = [str(a) for a in argv]
        if self.dry_run:
            logger.info(f"[dry-run] {' '.join(argv)}")
            return subprocess.CompletedProcess(argv, 0, "", "")
        logger.info(f"Running: {' '.join(argv)}")
        return self.run(argv, check=check)

    def which(self, name):
        return shutil.which(name)

    def is_root(self) -> bool:
        return os.geteuid() == 0

    def backup(self, path: Path) -> Path:
        target = backup_name(path, self.clock())
        if self.dry_run:
            logger.info(f"Would back up {path} to {target}")
        else:
            shutil.copy2(path, target)
            st = os.stat(path)
            os.chown(target, st.st_uid, st.st_gid)
            logger.info(f"Backed up {path} to {target}")
        return target

    def write_text(self, path: Path, text: str, mode=None) -> None:
        if self.dry_run:
            logger.info(f"Would write {path}")
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        if mode is not None:
            path.chmod(mode)

    def remove(self, path: Path) -> None:
        if self.dry_run:
            logger.info(f"[dry-run] rm {path}")
            return
        logger.info(f"Running: rm {path}")
        path.unlink()

    def chown(self, path: Path, user: str) -> None:
        if self.dry_run:
            logger.info(f"[dry-run] chown {user}:{user} {path}")
            return
        shutil.chown(path, user=user, group=user)
