"""
Side channel for failures inside logrelay itself.

Sinks cannot report their own failures through the routers they serve,
so internal problems (unwritable log files, failed rotations, raising
message producers) are sent to the standard library logger
``logrelay.diagnostics`` instead. No handler is installed here; the
host application decides where these records go.
"""

from __future__ import annotations

import logging
from typing import Callable

DIAGNOSTICS_LOGGER_NAME = "logrelay.diagnostics"

DiagnosticReporter = Callable[[str], None]

_log = logging.getLogger(DIAGNOSTICS_LOGGER_NAME)


def report_diagnostic(message: str) -> None:
    _log.warning(message)
