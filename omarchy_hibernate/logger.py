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
Structured logging setup.

Console output keeps the terse ">> message" lines users see from the setup
tool; errors go to stderr. JSON output is available for the GUI and for
running the battery monitor under systemd.
"""

import logging
import sys

import structlog

LEVEL_PREFIX = {
    "debug": ">> ",
    "info": ">> ",
    "warning": ">> Warning: ",
    "error": "ERROR: ",
    "critical": "FATAL: ",
}


def _arrow_renderer(logger, method_name, event_dict):
    """Render an event as a single '>> message key=value' line."""
    level = event_dict.pop("level", method_name)
    event = str(event_dict.pop("event", ""))
    for key in ("logger", "timestamp"):
        event_dict.pop(key, None)
    extras = " ".join(f"{key}={value}" for key, value in event_dict.items())
    line = LEVEL_PREFIX.get(level, ">> ") + event
    if extras:
        line = f"{line} {extras}"
    return line


class _BelowLevel(logging.Filter):
    def __init__(self, level):
        super().__init__()
        self.level = level

    def filter(self, record):
        return record.levelno < self.level


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_format: "console" for >> lines, "json" for one JSON object per line
    """
    level = getattr(logging, log_level.upper())

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_BelowLevel(logging.ERROR))
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )

    processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.contextvars.merge_contextvars,
    ]
    if log_format == "json":
        processors += [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(_arrow_renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str):
    return structlog.get_logger(name)
