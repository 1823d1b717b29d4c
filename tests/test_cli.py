"""Tests for the command line entry point."""
import pytest

from omarchy_hibernate import cli

from conftest import FakeRunner


@pytest.fixture
def wired(settings, runner, monkeypatch):
    """Route the CLI to the fake system instead of the real one."""
    monkeypatch.setattr(cli, "setup_logging", lambda *a, **kw: None)
    monkeypatch.setattr(cli, "load_settings", lambda **kw: settings.model_copy(update=kw))
    created = []

    def make_runner(dry_run=False):
        runner.dry_run = dry_run
        created.append(runner)
        return runner

    monkeypatch.setattr(cli, "Runner", make_runner)
    monkeypatch.delenv("SUDO_USER", raising=False)
    monkeypatch.delenv("PKEXEC_UID", raising=False)
    return runner


class TestPromptYesNo:

    @pytest.mark.parametrize("answer, expected", [
        ("", True), ("y", True), ("YES", True), ("n", False), ("No", False),
    ])
    def test_answers(self, answer, expected):
        assert cli.prompt_yes_no("Continue?", input_fn=lambda p: answer) is expected

    def test_reasks_on_garbage(self, capsys):
        answers = iter(["maybe", "later", "y"])
        assert cli.prompt_yes_no("Continue?", input_fn=lambda p: next(answers)) is True
        assert capsys.readouterr().out.count("Please answer Y or N") == 2


class TestDispatch:

    def test_verify_exit_code(self, wired):
        assert cli.dispatch(["verify"]) == 1

    def test_menu(self, wired, settings):
        assert cli.dispatch(["menu"]) == 0
        assert "Hibernate" in settings.menu_file.read_text()

    def test_fatal_error_returns_1(self, wired, caplog):
        wired.root = False
        assert cli.dispatch(["power-button"]) == 1
        assert "FATAL: Run as root" in caplog.text

    def test_dry_run_flag(self, wired, settings):
        assert cli.dispatch(["--dry-run", "power-button"]) == 0
        assert wired.dry_run is True
        assert "HandlePowerKey=ignore" in settings.logind_conf.read_text()

    def test_setup_without_prompts(self, wired, settings, plenty_of_space, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda p: pytest.fail("prompted"))
        assert cli.dispatch(["setup", "--no-prompt"]) == 0
        assert wired.ran("/usr/bin/limine-update")

    def test_setup_asks_follow_ups(self, wired, settings, plenty_of_space, monkeypatch):
        questions = []
        monkeypatch.setattr(cli, "prompt_yes_no", lambda q: questions.append(q) or False)
        assert cli.dispatch(["setup"]) == 0
        assert len(questions) == 3

    def test_battery_monitor_args(self, wired, monkeypatch):
        seen = {}
        monkeypatch.setattr(cli.battery_monitor, "monitor",
                            lambda runner, device, threshold, interval: seen.update(
                                device=device, threshold=threshold, interval=interval))
        assert cli.dispatch(["battery-monitor", "--device", "/bat", "--threshold", "10"]) == 0
        assert seen == {"device": "/bat", "threshold": 10, "interval": 60}

    def test_command_required(self, wired):
        with pytest.raises(SystemExit):
            cli.dispatch([])
