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

"""armada - disposable multi-cluster kind environments for network testing."""

from __future__ import annotations

import logging

from rich.console import Console

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%H:%M:%S"

console = Console(stderr=True)
logger = logging.getLogger("armada")


def configure_logging(debug: bool = False) -> logging.Logger:
    """Configure process logging and return the package logger.

    Args:
        debug: Whether to lower the armada logger to DEBUG.

    Returns:
        The ``armada`` logger, ready to hand to the orchestrator.
    """
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    for noisy in ("kubernetes", "urllib3", "sh"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return logger
