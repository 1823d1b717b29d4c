"""Tests for verification of a hibernation setup against live system state."""
import pytest

from omarchy_hibernate import verify

from conftest import FSTAB, HOOKS_CONF, LIMINE_DEFAULTS, RAM_BYTES, make_swapfile


@pytest.fixture
def ready(settings, runner):
    """A system where setup completed and the machine was rebooted."""
    make_swapfile(settings)
    settings.fstab_path.write_text(
        FSTAB + f"\n# Swapfile (Btrfs) for hibernation support\n{settings.swapfile_path} none swap defaults,pri=0 0 0\n"
    )
    settings.hooks_conf_path.write_text(HOOKS_CONF.replace(")", " resume)"))
    settings.limine_defaults.write_text(LIMINE_DEFAULTS.replace(
        '"quiet splash"', '"quiet splash resume=/dev/mapper/root resume_offset=198123956"'))
    settings.power_resume_path.write_text("254:0\n")
    settings.power_resume_offset_path.write_text("198123956\n")
    runner.respond(["swapon", "--noheadings"], f"{settings.swapfile_path} file {RAM_BYTES}\n")
    return settings


def statuses(report):
    return {r.name: r.status for r in report.results}


class TestVerify:

    def test_ready_system_passes(self, ready, runner):
        report = verify.verify(ready, runner)

        assert report.passed
        assert report.errors == 0
        assert report.warnings == 0
        assert statuses(report) == {
            "subvolume": verify.OK,
            "swapfile": verify.OK,
            "swap-active": verify.OK,
            "fstab": verify.OK,
            "resume-hook": verify.OK,
            "kernel-resume": verify.OK,
            "resume-offset": verify.OK,
            "resume-persisted": verify.OK,
            "resume-generator": verify.OK,
        }

    def test_fresh_system_fails_every_check(self, settings, runner):
        report = verify.collect(settings, runner)

        assert not report.passed
        assert statuses(report) == {
            "subvolume": verify.ERROR,
            "swapfile": verify.ERROR,
            "swap-active": verify.ERROR,
            "fstab": verify.ERROR,
            "resume-hook": verify.ERROR,
            "kernel-resume": verify.ERROR,
            "resume-generator": verify.OK,
        }

    def test_size_mismatch_is_a_warning(self, ready, runner):
        with open(ready.swapfile_path, "wb") as f:
            f.truncate(RAM_BYTES - 4096)

        report = verify.collect(ready, runner)

        assert report.passed
        assert report.warnings == 1
        assert statuses(report)["swapfile-size"] == verify.WARNING

    def test_offset_mismatch_is_an_error(self, ready, runner):
        ready.power_resume_offset_path.write_text("12345\n")

        report = verify.collect(ready, runner)

        assert not report.passed
        mismatch = next(r for r in report.results if r.name == "resume-offset")
        assert mismatch.status == verify.ERROR
        assert "Runtime:    12345" in mismatch.details
        assert "Swapfile:   198123956" in mismatch.details

    def test_not_persisted_is_a_warning(self, ready, runner):
        ready.limine_defaults.write_text(LIMINE_DEFAULTS)

        report = verify.collect(ready, runner)

        assert report.passed
        assert statuses(report)["resume-persisted"] == verify.WARNING

    def test_missing_sysfs_files(self, ready, runner):
        ready.power_resume_offset_path.unlink()

        report = verify.collect(ready, runner)

        assert statuses(report)["kernel-resume"] == verify.ERROR
        assert "resume-offset" not in statuses(report)

    def test_unknown_offset_skips_comparison(self, ready, runner):
        runner.respond(["btrfs", "inspect-internal", "map-swapfile"], "", returncode=1)
        runner.respond(["filefrag", "-v"], "", returncode=1)

        report = verify.collect(ready, runner)

        assert report.passed
        assert "resume-offset" not in statuses(report)

    def test_summary_logged(self, ready, runner, caplog):
        verify.verify(ready, runner)
        assert "✓ Verification PASSED" in caplog.text

    def test_failure_logged(self, settings, runner, caplog):
        verify.verify(settings, runner)
        assert "Verification FAILED: 6 error(s), 0 warning(s)" in caplog.text

    def test_failed_checks_stay_off_stderr(self, settings, runner, caplog):
        verify.verify(settings, runner)

        errors = [r.getMessage() for r in caplog.records if r.levelname == "ERROR"]
        assert len(errors) == 1
        assert "Verification FAILED" in errors[0]
        failed_lines = [r for r in caplog.records if "✗" in r.getMessage() and "FAILED" not in r.getMessage()]
        assert failed_lines
        assert all(r.levelname == "INFO" for r in failed_lines)
