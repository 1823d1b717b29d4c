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

"""Prepare hibernation on Omarchy with a Btrfs root and the Limine bootloader.

Commands:
  omarchy-hibernate setup               Create swap subvolume and swapfile, wire up resume
  omarchy-hibernate setup --update      Recreate the swapfile if RAM has changed
  omarchy-hibernate verify              Verify hibernation configuration is correct
  omarchy-hibernate menu                Add Hibernate to the Omarchy system menu
  omarchy-hibernate auto                Suspend-then-hibernate, lid, idle and low battery
  omarchy-hibernate power-button        Make the power button hibernate
  omarchy-hibernate gui                 Open the graphical helper

Environment:
  DRY_RUN=1  Run in dry-run mode (no changes)
"""

import argparse
import sys

from omarchy_hibernate import (
    __version__,
    auto_hibernate,
    battery_monitor,
    menu,
    power_button,
    reconcile,
    verify,
)
from omarchy_hibernate.config import load_settings
from omarchy_hibernate.exceptions import HibernateError
from omarchy_hibernate.logger import get_logger, setup_logging
from omarchy_hibernate.runner import Runner

logger = get_logger(__name__)


def prompt_yes_no(prompt, input_fn=input):
    """Ask until the answer is yes (default) or no."""
    while True:
        response = input_fn(f"{prompt} [Y/n]: ").strip().lower()
        if response in ("y", "yes", ""):
            return True
        if response in ("n", "no"):
            return False
        print("Please answer Y or N")


def cmd_setup(args, settings, runner) -> int:
    reconcile.setup_hibernation(settings, runner, update=args.update)

    if runner.dry_run or args.no_prompt:
        logger.info("Skipping post-installation prompts")
        logger.info("Afterwards you can run: omarchy-hibernate menu | auto | power-button")
        return 0

    reconcile.run_follow_ups(settings, runner, prompt_yes_no)
    logger.info("Setup complete!")
    logger.info("Test hibernation with: systemctl hibernate")
    logger.info("Or open the System menu and select Hibernate")
    return 0


def cmd_verify(args, settings, runner) -> int:
    report = verify.verify(settings, runner)
    return 0 if report.passed else 1


def cmd_menu(args, settings, runner) -> int:
    _, home = auto_hibernate.invoking_user_home()
    menu.add_hibernate_to_menu(settings, runner, home=home)
    return 0


def cmd_auto(args, settings, runner) -> int:
    auto_hibernate.configure_auto_hibernate(settings, runner)
    return 0


def cmd_power_button(args, settings, runner) -> int:
    power_button.configure_power_button(settings, runner)
    return 0


def cmd_battery_monitor(args, settings, runner) -> int:
    battery_monitor.monitor(
        runner,
        args.device or settings.fallback_battery_device,
        threshold=args.threshold if args.threshold is not None else settings.battery_threshold,
        interval=args.interval if args.interval is not None else settings.battery_check_interval,
    )
    return 0


def cmd_gui(args, settings, runner) -> int:
    from omarchy_hibernate import gui
    return gui.run(settings)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="omarchy-hibernate",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would change without changing anything")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    parser.add_argument("--log-format", choices=["console", "json"], default="console",
                        help="Log output format")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("setup", help="Create swapfile and configure resume")
    p.add_argument("--update", action="store_true",
                   help="Recreate swapfile if RAM has changed")
    p.add_argument("--no-prompt", action="store_true",
                   help="Skip the menu, auto-hibernate and power button questions")
    p.set_defaults(func=cmd_setup)

    p = sub.add_parser("verify", help="Verify hibernation configuration is correct")
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("menu", help="Add Hibernate to the Omarchy system menu")
    p.set_defaults(func=cmd_menu)

    p = sub.add_parser("auto", help="Configure automatic hibernation")
    p.set_defaults(func=cmd_auto)

    p = sub.add_parser("power-button", help="Make the power button hibernate")
    p.set_defaults(func=cmd_power_button)

    p = sub.add_parser("battery-monitor", help="Hibernate on low battery (runs as a service)")
    p.add_argument("--device", help="UPower device path")
    p.add_argument("--threshold", type=int, help="Hibernate below this percentage")
    p.add_argument("--interval", type=int, help="Seconds between checks")
    p.set_defaults(func=cmd_battery_monitor)

    p = sub.add_parser("gui", help="Open the graphical helper")
    p.set_defaults(func=cmd_gui)

    return parser


def dispatch(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO", args.log_format)

    settings = load_settings(dry_run=True) if args.dry_run else load_settings()
    runner = Runner(dry_run=settings.dry_run)

    try:
        return args.func(args, settings, runner)
    except HibernateError as e:
        logger.critical(str(e))
        return 1


def main() -> None:
    sys.exit(dispatch())


if __name__ == "__main__":
    main()
