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

import os
import subprocess
import sys

from PySide6.QtWidgets import (
    QApplication, QMainWindow, QLabel, QVBoxLayout, QWidget,
    QPushButton, QMessageBox, QGroupBox, QFormLayout
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QIcon

from omarchy_hibernate import __version__, menu, system, verify
from omarchy_hibernate.auto_hibernate import invoking_user_home
from omarchy_hibernate.exceptions import HibernateError
from omarchy_hibernate.runner import Runner

STATUS_ICONS = {verify.OK: "✅", verify.WARNING: "⚠️", verify.ERROR: "❌"}


def privileged_command(*args, dry_run=False):
    """argv that re-runs this tool as root through polkit.

    pkexec drops the environment, so DRY_RUN has to travel as --dry-run.
    """
    argv = ['pkexec', sys.executable, '-m', 'omarchy_hibernate']
    if dry_run:
        argv.append('--dry-run')
    return argv + list(args)


class HibernationHelper(QMainWindow):
    def __init__(self, settings, runner=None):
        super().__init__()
        self.settings = settings
        self.runner = runner or Runner(dry_run=settings.dry_run)

        icon_path = os.path.join(os.path.dirname(__file__), "omarchy-hibernate.png")
        if os.path.exists(icon_path):
            self.setWindowIcon(QIcon(icon_path))
        else:
            # Fallback to system icon
            self.setWindowIcon(QIcon.fromTheme("system-suspend-hibernate"))
        self.hibernation_ready = False
        self.setWindowTitle("Omarchy Hibernate")
        self.resize(600, 520)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout(central_widget)

        title = QLabel("🐧 Omarchy Hibernate")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 18px; font-weight: bold; margin: 10px;")
        layout.addWidget(title)

        desc = QLabel(
            "Sets up hibernation on a Btrfs root with the Limine bootloader:<br>"
            "a swap subvolume and a swapfile as large as your RAM, the resume hook<br>"
            "and the resume= / resume_offset= kernel parameters.<br>"
            "<br>"
            "<b>zram does NOT support hibernation.</b>"
        )
        desc.setTextFormat(Qt.TextFormat.RichText)
        desc.setAlignment(Qt.AlignCenter)
        desc.setStyleSheet("margin-bottom: 20px; color: #555;")
        desc.setWordWrap(True)
        layout.addWidget(desc)

        self.status_group = QGroupBox("System Status")
        self.status_layout = QFormLayout()
        self.status_group.setLayout(self.status_layout)
        layout.addWidget(self.status_group)

        self.check_btn = QPushButton("🔍 Verify Hibernation Setup")
        self.check_btn.clicked.connect(self.check_status)
        layout.addWidget(self.check_btn)

        self.test_btn = QPushButton("💤 Test Hibernation Now")
        self.test_btn.clicked.connect(self.test_hibernate)
        self.test_btn.setEnabled(False)  # until a verification passes
        layout.addWidget(self.test_btn)

        self.enable_btn = QPushButton("🛠️ Set Up Hibernation")
        self.enable_btn.clicked.connect(self.enable_hibernation)
        layout.addWidget(self.enable_btn)

        self.update_btn = QPushButton("🔄 Resize Swapfile to RAM")
        self.update_btn.clicked.connect(self.update_swapfile)
        layout.addWidget(self.update_btn)

        self.menu_btn = QPushButton("📋 Add Hibernate to System Menu")
        self.menu_btn.clicked.connect(self.add_to_menu)
        layout.addWidget(self.menu_btn)

        self.auto_btn = QPushButton("⏰ Configure Automatic Hibernation")
        self.auto_btn.clicked.connect(self.configure_auto)
        layout.addWidget(self.auto_btn)

        self.power_btn = QPushButton("⏻ Power Button Hibernates")
        self.power_btn.clicked.connect(self.configure_power_button)
        layout.addWidget(self.power_btn)

        self.about_btn = QPushButton("ℹ️ About")
        self.about_btn.clicked.connect(self.show_about)
        layout.addWidget(self.about_btn)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)
        self.status_label.setStyleSheet(
            "padding: 10px; margin-top: 10px; border-radius: 4px;"
        )
        self.status_label.hide()  # Hide until first message
        layout.addWidget(self.status_label)

        layout.addStretch()

    def add_status_row(self, label_text, value_text):
        label = QLabel(f"<b>{label_text}:</b>")
        value = QLabel(value_text)
        value.setTextInteractionFlags(Qt.TextSelectableByMouse)
        value.setWordWrap(True)
        self.status_layout.addRow(label, value)

    def set_status_message(self, message, success=True):
        """Show message in status area with color coding."""
        self.status_label.setText(message)
        if success:
            self.status_label.setStyleSheet(
                "background-color: #e6f4ea; color: #137333; padding: 10px; margin-top: 10px; border-radius: 4px;"
            )
        else:
            self.status_label.setStyleSheet(
                "background-color: #fce8e6; color: #c5221f; padding: 10px; margin-top: 10px; border-radius: 4px;"
            )
        self.status_label.show()

    def clear_status_rows(self):
        while self.status_layout.count():
            child = self.status_layout.takeAt(0)
            if child.widget():
                child.widget().deleteLater()

    def check_status(self):
        self.clear_status_rows()
        try:
            report = verify.collect(self.settings, self.runner)
        except HibernateError as e:
            self.add_status_row("Verification", f"❌ {e}")
            self.set_status_message(f"❌ Verification could not run:\n{e}", False)
            return

        resume, resume_offset = system.get_kernel_resume_config(self.settings)
        if resume:
            kernel_text = f"resume={resume}"
            if resume_offset:
                kernel_text += f" resume_offset={resume_offset}"
        else:
            kernel_text = "❌ Not set on the running kernel"
        self.add_status_row("Kernel Resume", kernel_text)

        for result in report.results:
            text = f"{STATUS_ICONS[result.status]} {result.message}"
            if result.details:
                text += "<br>" + "<br>".join(result.details)
            self.add_status_row(result.name, text)

        self.hibernation_ready = report.passed
        self.test_btn.setEnabled(self.hibernation_ready)

        if report.passed:
            msg = "✅ Hibernation is fully configured and ready!"
            if report.warnings:
                msg += f" ({report.warnings} warning(s))"
            self.set_status_message(msg, True)
        else:
            self.set_status_message(
                f"⚠️ {report.errors} error(s), {report.warnings} warning(s). "
                "Use 'Set Up Hibernation' to fix them.",
                False,
            )

    def run_privileged(self, args, success_message):
        """Run a subcommand as root and report the outcome. Returns True on success."""
        try:
            result = subprocess.run(
                privileged_command(*args, dry_run=self.settings.dry_run),
                capture_output=True, text=True, timeout=600,
            )
        except subprocess.TimeoutExpired:
            self.set_status_message("❌ The operation took too long.", False)
            return False
        except OSError as e:
            self.set_status_message(f"❌ Could not start pkexec:\n{e}", False)
            return False

        if result.returncode == 0:
            self.set_status_message(success_message, True)
            return True
        self.set_status_message(f"❌ {' '.join(args)} failed:\n{result.stderr or result.stdout}", False)
        return False

    def test_hibernate(self):
        reply = QMessageBox.question(
            self,
            "Confirm Hibernation Test",
            "This will attempt to hibernate your system immediately.\n"
            "<b>⚠️ Save all your work first!</b>\n\n"
            "Your screen will turn off, and the system will resume when you power it on.\n"
            "Continue?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No
        )
        if reply == QMessageBox.Yes:
            try:
                # Not waited on, the system goes down
                subprocess.Popen(['systemctl', 'hibernate'])
            except OSError as e:
                self.set_status_message(f"❌ Failed to start hibernation:\n{str(e)}", False)

    def enable_hibernation(self):
        reply = QMessageBox.question(
            self,
            "Set Up Hibernation?",
            f"This will:\n"
            f"• Create the Btrfs subvolume {self.settings.subvol_path}\n"
            f"• Create {self.settings.swapfile_path} as large as your RAM\n"
            f"• Add the resume hook and kernel parameters, then run limine-update\n\n"
            f"Your password will be required.",
            QMessageBox.Yes | QMessageBox.No
        )
        if reply == QMessageBox.Yes:
            if self.run_privileged(
                ['setup', '--no-prompt'],
                "✅ Hibernation set up!\nPlease reboot to apply changes.",
            ):
                self.check_status()

    def update_swapfile(self):
        if self.run_privileged(
            ['setup', '--update', '--no-prompt'],
            "✅ Swapfile matches RAM size.\nPlease reboot to apply changes.",
        ):
            self.check_status()

    def add_to_menu(self):
        _, home = invoking_user_home()
        try:
            changed = menu.add_hibernate_to_menu(self.settings, self.runner, home=home)
        except HibernateError as e:
            self.set_status_message(f"❌ Could not update the menu:\n{e}", False)
            return
        if changed:
            self.set_status_message("✅ Hibernate added to the System menu.", True)
        else:
            self.set_status_message("✅ Hibernate is already in the System menu.", True)

    def configure_auto(self):
        reply = QMessageBox.question(
            self,
            "Configure Automatic Hibernation?",
            f"This will:\n"
            f"• Hibernate after {self.settings.hibernate_delay} of suspend\n"
            f"• Use suspend-then-hibernate on lid close and when idle\n"
            f"• Hibernate when the battery drops below {self.settings.battery_threshold}%\n\n"
            f"Your password will be required.",
            QMessageBox.Yes | QMessageBox.No
        )
        if reply == QMessageBox.Yes:
            self.run_privileged(['auto'], "✅ Automatic hibernation configured!")

    def configure_power_button(self):
        self.run_privileged(['power-button'], "✅ The power button now hibernates the system.")

    def show_about(self):
        about_text = (
            f"<h3>Omarchy Hibernate</h3>"
            f"<p>Version {__version__}</p>"
            "<p>Sets up hibernation on Omarchy with a Btrfs root and the Limine bootloader</p>"
            "<p>• Dedicated swap subvolume and swapfile sized to RAM<br>"
            "• Resume hook and kernel parameters kept in sync<br>"
            "• Optional menu entry, power button and automatic hibernation</p>"
            "<p>© 2025 Chief Denis<br>"
            "Licensed under GPL-3.0-or-later"
        )
        QMessageBox.about(self, "About Omarchy Hibernate", about_text)


def run(settings, argv=None):
    app = QApplication(argv if argv is not None else sys.argv)
    window = HibernationHelper(settings)
    window.show()
    return app.exec()
