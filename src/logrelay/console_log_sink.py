from __future__ import annotations

import sys
import threading
from typing import Any, Iterable, Mapping, Optional, TextIO

from logrelay.diagnostics import DiagnosticReporter, report_diagnostic
from logrelay.log_config import ConsoleSinkKey, read_severity
from logrelay.log_context import LogContext
from logrelay.log_formatter import LogFormatter
from logrelay.log_severity import LogSeverity
from logrelay.log_sink import SinkSettings


class ConsoleLogSink:
    """
    Log sink that prints messages to stdout.

    Messages at or above `error_threshold` go to stderr instead.
    Streams default to whatever sys.stdout / sys.stderr are at write time.
    """

    def __init__(
        self,
        identifier: str,
        *,
        threshold: LogSeverity = LogSeverity.DEBUG,
        formatter: Optional[LogFormatter] = None,
        error_threshold: Optional[LogSeverity] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        diagnostic: DiagnosticReporter = report_diagnostic,
    ):
        self.settings = SinkSettings(identifier, threshold=threshold, formatter=formatter)
        self.error_threshold = error_threshold
        self._stdout = stdout
        self._stderr = stderr
        self._diagnostic = diagnostic
        self._lock = threading.Lock()
        self._did_report_failure = False

    @property
    def identifier(self) -> str:
        return self.settings.identifier

    @property
    def threshold(self) -> LogSeverity:
        return self.settings.threshold

    @threshold.setter
    def threshold(self, value: LogSeverity) -> None:
        self.settings.threshold = value

    def update_from_mapping(
        self,
        dictionary: Mapping[str, Any],
        available_formatters: Iterable[LogFormatter] = (),
    ) -> None:
        self.settings.update_from_mapping(dictionary, available_formatters)

        error_threshold = read_severity(dictionary, ConsoleSinkKey.ERROR_THRESHOLD_LEVEL.value)
        if error_threshold is not None:
            self.error_threshold = error_threshold

    def log(self, message: str, level: LogSeverity, context: LogContext) -> None:
        rendered = self.settings.prepare(message, level, context)
        if rendered is None:
            return
        self.perform_log(rendered, level, context)

    def perform_log(self, message: str, level: LogSeverity, context: LogContext) -> None:
        if not message.endswith("\n"):
            message = message + "\n"

        if self.error_threshold is not None and level >= self.error_threshold:
            stream = self._stderr or sys.stderr
        else:
            stream = self._stdout or sys.stdout

        with self._lock:
            try:
                stream.write(message)
                stream.flush()
                self._did_report_failure = False
            except (OSError, ValueError) as e:
                if not self._did_report_failure:
                    self._did_report_failure = True
                    self._diagnostic(f"Sink '{self.identifier}' failed to write to console: {e}")
