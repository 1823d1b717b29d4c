"""
Pytest configuration and shared fixtures.

Every test works on a fake system tree under tmp_path and a FakeRunner that
records commands instead of running them.
"""
import subprocess
from datetime import datetime

import pytest

from omarchy_hibernate.config import Settings
from omarchy_hibernate.exceptions import CommandError
from omarchy_hibernate.logger import setup_logging
from omarchy_hibernate.runner import Runner

setup_logging()

RAM_KB = 16384000
RAM_BYTES = RAM_KB * 1024
FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5)
STAMP = "20250102030405"

LIMINE_DEFAULTS = """\
TARGET_OS_NAME="Omarchy"
ESP_PATH="/boot"
KERNEL_CMDLINE[default]="cryptdevice=PARTUUID=1234:root root=/dev/mapper/root zswap.enabled=0 rootflags=subvol=@ rw rootfstype=btrfs"
KERNEL_CMDLINE[default]+="quiet splash"
ENABLE_UKI=yes
"""

HOOKS_CONF = "HOOKS=(base udev plymouth keyboard autodetect microcode modconf kms keymap consolefont block encrypt filesystems fsck btrfs-overlayfs)\n"

FSTAB = """\
# <file system> <dir> <type> <options> <dump> <pass>
/dev/mapper/root  /      btrfs  rw,relatime,compress=zstd:3,subvol=/@      0 0
/dev/mapper/root  /home  btrfs  rw,relatime,compress=zstd:3,subvol=/@home  0 0
"""

MENU = """\
#!/bin/bash

show_main_menu() {
  go_to_menu "$(menu "Go" "󰀻  Apps\\n󰧑  Learn\\n  System")"
}

show_system_menu() {
  case $(menu "System" "  Lock\\n󱄄  Screensaver\\n󰒲  Suspend\\n󰜉  Restart\\n󰐥  Shutdown") in
  *Lock*) omarchy-lock-screen ;;
  *Screensaver*) omarchy-launch-screensaver force ;;
  *Suspend*) systemctl suspend ;;
  *Restart*) systemctl reboot ;;
  *Shutdown*) systemctl poweroff ;;
  *) back_to show_main_menu ;;
  esac
}

go_to_menu() {
  case "${1,,}" in
  *system*) show_system_menu ;;
  esac
}
"""

LOGIND_CONF = """\
[Login]
#NAutoVTs=6
HandlePowerKey=ignore
#HandleSuspendKey=suspend
"""

HYPRIDLE_CONF = """\
general {
    lock_cmd = omarchy-lock-screen
    before_sleep_cmd = loginctl lock-session
}

listener {
    timeout = 300
    on-timeout = loginctl lock-session
}
"""

MAP_SWAPFILE = "Physical start:   811511726080\nResume offset:       198123956\n"


class FakeRunner(Runner):
    """Runner that answers commands from a script and records every call."""

    def __init__(self, dry_run=False, root=True, tools=("btrfs", "upower")):
        super().__init__(dry_run=dry_run, clock=lambda: FIXED_NOW)
        self.calls = []
        self.responses = []
        self.root = root
        self.tools = set(tools)
        self.chowned = []

    def respond(self, prefix, stdout="", returncode=0, stderr=""):
        # Later registrations win
        self.responses.insert(0, ([str(p) for p in prefix], returncode, stdout, stderr))

    def run(self, argv, check=True, timeout=None):
        argv = [str(a) for a in argv]
        self.calls.append(argv)
        result = subprocess.CompletedProcess(argv, 0, "", "")
        for prefix, returncode, stdout, stderr in self.responses:
            if argv[:len(prefix)] == prefix:
                result = subprocess.CompletedProcess(argv, returncode, stdout, stderr)
                break
        if check and result.returncode != 0:
            raise CommandError(argv, result.returncode, result.stderr)
        return result

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.tools else None

    def is_root(self):
        return self.root

    def chown(self, path, user):
        self.chowned.append((path, user))

    def ran(self, *prefix):
        prefix = [str(p) for p in prefix]
        return any(call[:len(prefix)] == prefix for call in self.calls)


@pytest.fixture
def root(tmp_path):
    """A fake filesystem with the files a fresh Omarchy install has."""
    files = {
        "proc/meminfo": f"MemTotal:       {RAM_KB} kB\nMemFree:         1234 kB\n",
        "proc/cmdline": "initrd=\\initramfs-linux.img root=/dev/mapper/root rw quiet\n",
        "sys/power/state": "freeze mem disk\n",
        "sys/power/resume": "0:0\n",
        "sys/power/resume_offset": "0\n",
        "etc/default/limine": LIMINE_DEFAULTS,
        "boot/EFI/limine/limine.conf": "timeout: 3\n",
        "etc/mkinitcpio.conf.d/omarchy_hooks.conf": HOOKS_CONF,
        "etc/fstab": FSTAB,
        "etc/systemd/logind.conf": LOGIND_CONF,
        "home/user/.local/share/omarchy/bin/omarchy-menu": MENU,
        "home/user/.config/hypr/hypridle.conf": HYPRIDLE_CONF,
        "usr/lib/systemd/system-generators/systemd-hibernate-resume-generator": "#!/bin/sh\n",
    }
    for rel, content in files.items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    (tmp_path / "usr/lib/systemd/system-generators/systemd-hibernate-resume-generator").chmod(0o755)
    return tmp_path


@pytest.fixture
def settings(root):
    return Settings(
        dry_run=False,
        subvol_path=root / "swap",
        swapfile_path=root / "swap" / "swapfile",
        fstab_path=root / "etc/fstab",
        hooks_conf_path=root / "etc/mkinitcpio.conf.d/omarchy_hooks.conf",
        limine_defaults=root / "etc/default/limine",
        limine_conf=root / "boot/EFI/limine/limine.conf",
        resume_generator=root / "usr/lib/systemd/system-generators/systemd-hibernate-resume-generator",
        meminfo_path=root / "proc/meminfo",
        cmdline_path=root / "proc/cmdline",
        power_state_path=root / "sys/power/state",
        power_resume_path=root / "sys/power/resume",
        power_resume_offset_path=root / "sys/power/resume_offset",
        logind_conf=root / "etc/systemd/logind.conf",
        logind_conf_dir=root / "etc/systemd/logind.conf.d",
        sleep_conf_dir=root / "etc/systemd/sleep.conf.d",
        systemd_unit_dir=root / "etc/systemd/system",
        menu_file=root / "home/user/.local/share/omarchy/bin/omarchy-menu",
        hypridle_conf=root / "home/user/.config/hypr/hypridle.conf",
    )


@pytest.fixture
def runner():
    fake = FakeRunner()
    fake.respond(["findmnt", "-no", "FSTYPE", "/"], "btrfs\n")
    fake.respond(["findmnt", "-no", "TARGET", "/"], "/\n")
    fake.respond(["btrfs", "inspect-internal", "map-swapfile"], MAP_SWAPFILE)
    return fake


@pytest.fixture
def plenty_of_space(monkeypatch):
    from omarchy_hibernate import system
    monkeypatch.setattr(system, "get_available_bytes", lambda path="/": RAM_BYTES * 4)


def make_swapfile(settings, size=RAM_BYTES):
    """Sparse swapfile of the given size inside the swap subvolume."""
    settings.subvol_path.mkdir(exist_ok=True)
    with open(settings.swapfile_path, "wb") as f:
        f.truncate(size)
