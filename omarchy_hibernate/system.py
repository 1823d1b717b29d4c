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

"""Read-only probes of the running system: RAM, swap, kernel resume state."""

import math
import os
from pathlib import Path

from omarchy_hibernate.exceptions import FatalError

IEC_UNITS = ["K", "M", "G", "T", "P", "E"]


def get_ram_bytes(settings):
    """Total physical RAM in bytes, as reported by MemTotal."""
    try:
        with open(settings.meminfo_path, 'r') as f:
            for line in f:
                if line.startswith('MemTotal:'):
                    return int(line.split()[1]) * 1024
    except (OSError, ValueError, IndexError) as e:
        raise FatalError(f"Could not read MemTotal from {settings.meminfo_path}: {e}") from e
    raise FatalError(f"MemTotal not found in {settings.meminfo_path}")


def parse_swapon(output):
    """
    Parse `swapon --noheadings --raw --bytes --show=NAME,TYPE,SIZE` output.

    Returns list of dicts: [{'name': '/swap/swapfile', 'type': 'file', 'size': 17179869184}, ...]
    """
    swaps = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        try:
            size = int(parts[2])
        except ValueError:
            size = 0
        swaps.append({'name': parts[0], 'type': parts[1], 'size': size})
    return swaps


def get_swap_info(runner):
    result = runner.run(
        ['swapon', '--noheadings', '--raw', '--bytes', '--show=NAME,TYPE,SIZE'],
        check=False,
    )
    if result.returncode != 0:
        return []
    return parse_swapon(result.stdout)


def active_non_zram_swap(runner):
    """Active swap areas that can hold a hibernation image (zram cannot)."""
    return [s for s in get_swap_info(runner) if not s['name'].startswith('/dev/zram')]


def is_swap_active(runner, path):
    return any(s['name'] == str(path) for s in get_swap_info(runner))


def get_root_fstype(runner):
    return runner.run(['findmnt', '-no', 'FSTYPE', '/']).stdout.strip()


def get_root_mountpoint(runner):
    return runner.run(['findmnt', '-no', 'TARGET', '/']).stdout.strip()


def get_available_bytes(path="/"):
    """Bytes available to unprivileged users on the filesystem holding path."""
    stat = os.statvfs(path)
    return stat.f_frsize * stat.f_bavail


def kernel_supports_hibernation(settings):
    """Returns (power_management_present, disk_state_available)."""
    state_path = Path(settings.power_state_path)
    if not state_path.is_file():
        return False, False
    return True, 'disk' in state_path.read_text().split()


def get_kernel_resume_config(settings):
    """Check if kernel cmdline has resume= and possibly resume_offset="""
    try:
        cmdline = Path(settings.cmdline_path).read_text()
    except OSError:
        return None, None
    resume = None
    resume_offset = None
    for part in cmdline.split():
        if part.startswith('resume='):
            resume = part.split('=', 1)[1]
        elif part.startswith('resume_offset='):
            resume_offset = part.split('=', 1)[1]
    return resume, resume_offset


def get_runtime_resume(settings):
    """
    Contents of /sys/power/resume and /sys/power/resume_offset.

    Returns None when either file is missing. An unset kernel reports
    '0:0' and '0'.
    """
    resume_path = Path(settings.power_resume_path)
    offset_path = Path(settings.power_resume_offset_path)
    if not resume_path.is_file() or not offset_path.is_file():
        return None
    try:
        resume = resume_path.read_text().strip()
    except OSError:
        resume = ""
    try:
        offset = offset_path.read_text().strip()
    except OSError:
        offset = "0"
    return resume, offset


def parse_map_swapfile(output):
    """Resume offset from `btrfs inspect-internal map-swapfile` output."""
    for line in output.splitlines():
        if line.startswith('Resume offset:'):
            fields = line.split()
            if len(fields) >= 3:
                return fields[2]
    return None


def parse_filefrag(output):
    """Physical start of the first extent from `filefrag -v` output."""
    for line in output.splitlines():
        if line.lstrip().startswith('0:'):
            fields = line.split()
            if len(fields) >= 4:
                return fields[3].removesuffix('..')
    return None


def get_filefrag_offset(runner, swapfile):
    result = runner.run(['filefrag', '-v', swapfile], check=False)
    if result.returncode != 0:
        return None
    return parse_filefrag(result.stdout)


def get_swapfile_offset(runner, swapfile):
    """
    Physical offset of the swapfile for resume_offset=.

    Btrfs needs its own calculation, so btrfs inspect-internal is preferred;
    filefrag covers everything else.
    """
    offset = None
    if runner.which('btrfs'):
        result = runner.run(['btrfs', 'inspect-internal', 'map-swapfile', swapfile], check=False)
        if result.returncode == 0:
            offset = parse_map_swapfile(result.stdout)

    if not offset:
        offset = get_filefrag_offset(runner, swapfile)

    if not offset:
        raise FatalError("Could not determine swapfile offset")
    return offset


def btrfs_mkswapfile_supported(runner):
    result = runner.run(['btrfs', 'filesystem', 'mkswapfile', '--help'], check=False)
    return result.returncode == 0


def format_iec(num):
    """Human readable size in the style of `numfmt --to=iec`: 512, 1.5K, 16G."""
    if num < 1024:
        return str(num)
    value = float(num)
    for unit in IEC_UNITS:
        value /= 1024
        if value < 10:
            rounded = math.ceil(value * 10) / 10
            if rounded < 10:
                return f"{rounded:.1f}{unit}"
            return f"{int(rounded)}{unit}"
        rounded = math.ceil(value)
        if rounded < 1024:
            return f"{rounded}{unit}"
    return f"{math.ceil(value)}{IEC_UNITS[-1]}"
