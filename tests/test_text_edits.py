"""
Unit tests for the config file transforms: fstab, mkinitcpio hooks and the
Limine kernel command line.
"""
import pytest

from omarchy_hibernate import fstab, hooks, limine
from omarchy_hibernate.exceptions import EditError

from conftest import FSTAB, HOOKS_CONF, LIMINE_DEFAULTS


class TestFstab:

    def test_entry_format(self):
        assert fstab.swapfile_entry("/swap/swapfile") == "/swap/swapfile none swap defaults,pri=0 0 0"

    def test_append_adds_comment_and_entry(self):
        out = fstab.append_swapfile_entry(FSTAB, "/swap/swapfile")
        assert out == FSTAB + (
            "\n# Swapfile (Btrfs) for hibernation support\n"
            "/swap/swapfile none swap defaults,pri=0 0 0\n"
        )

    def test_append_is_noop_when_present(self):
        once = fstab.append_swapfile_entry(FSTAB, "/swap/swapfile")
        assert fstab.append_swapfile_entry(once, "/swap/swapfile") == once

    def test_any_mention_counts_as_present(self):
        text = FSTAB + "/swap/swapfile none swap sw 0 0\n"
        assert fstab.has_swapfile_entry(text, "/swap/swapfile")


class TestResumeHook:

    def test_inject_appends_resume_last(self):
        out = hooks.inject_resume_hook(HOOKS_CONF)
        assert out == HOOKS_CONF.replace("btrfs-overlayfs)", "btrfs-overlayfs resume)")
        assert hooks.has_resume_hook(out)

    def test_inject_is_noop_when_present(self):
        text = "HOOKS=(base udev resume filesystems)\n"
        assert hooks.inject_resume_hook(text) == text

    def test_no_hooks_line_left_alone(self):
        text = "# managed elsewhere\nMODULES=(btrfs)\n"
        assert hooks.hooks_line(text) is None
        assert hooks.inject_resume_hook(text) == text
        assert not hooks.has_resume_hook(text)

    def test_commented_hooks_line_ignored(self):
        text = "#HOOKS=(base resume)\nHOOKS=(base udev)\n"
        assert hooks.hooks_line(text) == "HOOKS=(base udev)"
        assert not hooks.has_resume_hook(text)
        assert hooks.inject_resume_hook(text) == "#HOOKS=(base resume)\nHOOKS=(base udev resume)\n"


class TestLimineCmdline:

    def test_appends_to_existing_plus_line(self):
        out = limine.set_resume_params(LIMINE_DEFAULTS, "/dev/mapper/root", "198123956")
        assert 'KERNEL_CMDLINE[default]+="quiet splash resume=/dev/mapper/root resume_offset=198123956"' in out
        assert limine.has_resume_params(out)

    def test_adds_plus_line_after_base_line(self):
        text = 'KERNEL_CMDLINE[default]="root=/dev/mapper/root rw"\nENABLE_UKI=yes\n'
        out = limine.set_resume_params(text, "/dev/mapper/root", "42")
        assert out == (
            'KERNEL_CMDLINE[default]="root=/dev/mapper/root rw"\n'
            'KERNEL_CMDLINE[default]+=" resume=/dev/mapper/root resume_offset=42"\n'
            'ENABLE_UKI=yes\n'
        )

    def test_replaces_stale_values_everywhere(self):
        text = (
            'KERNEL_CMDLINE[default]="root=/dev/mapper/root resume=/dev/sda2 rw"\n'
            'KERNEL_CMDLINE[default]+="quiet resume=/dev/mapper/root resume_offset=1"\n'
        )
        out = limine.set_resume_params(text, "/dev/mapper/root", "2")
        assert out == (
            'KERNEL_CMDLINE[default]="root=/dev/mapper/root rw"\n'
            'KERNEL_CMDLINE[default]+="quiet resume=/dev/mapper/root resume_offset=2"\n'
        )

    def test_idempotent(self):
        once = limine.set_resume_params(LIMINE_DEFAULTS, "/dev/mapper/root", "7")
        twice = limine.set_resume_params(once, "/dev/mapper/root", "7")
        assert twice == once
        assert twice.count("resume=") == 1

    def test_without_cmdline_raises(self):
        with pytest.raises(EditError):
            limine.set_resume_params('TARGET_OS_NAME="Omarchy"\n', "/dev/mapper/root", "7")

    def test_has_resume_params_needs_both(self):
        assert not limine.has_resume_params('KERNEL_CMDLINE[default]="resume=/dev/x"')
        assert limine.has_resume_params('KERNEL_CMDLINE[default]="resume=/dev/x resume_offset=1"')
