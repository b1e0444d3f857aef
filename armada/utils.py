# /*
# Copyright 2026 The Armada Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Utility functions for durations, list options, and command checks."""

from __future__ import annotations

import math

import pytimeparse2
import sh

from armada.exceptions import ConfigurationError


def parse_duration(text: str) -> float:
    """Parse a duration such as ``5m``, ``90s``, ``1h30m`` or ``300`` into seconds.

    Args:
        text: Duration string, or a plain number of seconds.

    Returns:
        The duration in seconds.

    Raises:
        ConfigurationError: If *text* is not a valid duration.
    """
    seconds = pytimeparse2.parse(text.strip())
    if seconds is None:
        raise ConfigurationError(f"invalid duration {text!r}", "examples: 300, 90s, 5m, 1h30m")
    seconds = float(seconds)
    if not math.isfinite(seconds) or seconds < 0:
        raise ConfigurationError(f"invalid duration {text!r}", "duration must be a finite, non-negative value")
    return seconds


def split_csv(values: list[str] | None) -> list[str]:
    """Flatten repeated and comma-separated option values, dropping blanks."""
    items: list[str] = []
    for value in values or []:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        ConfigurationError: If the command is not found.
    """
    try:
        found = sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise ConfigurationError(f"Required command '{cmd}' not found. Please install it first.") from err
    if not found:
        raise ConfigurationError(f"Required command '{cmd}' not found. Please install it first.")
