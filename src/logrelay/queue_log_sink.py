import queue
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from logrelay.log_context import LogContext
from logrelay.log_formatter import LogFormatter
from logrelay.log_severity import LogSeverity
from logrelay.log_sink import SinkSettings


@dataclass(frozen=True)
class QueuedRecord:
    message: str          # Rendered text
    level: LogSeverity
    context: LogContext


class QueueLogSink:
    """
    Log sink that forwards rendered messages to a thread-safe queue.

    Intended for GUI viewers and other consumers running on their own
    thread. This sink performs no I/O and is safe to use from any thread.
    """

    def __init__(
        self,
        identifier: str,
        target_queue: queue.Queue,
        *,
        threshold: LogSeverity = LogSeverity.DEBUG,
        formatter: Optional[LogFormatter] = None,
    ):
        self.settings = SinkSettings(identifier, threshold=threshold, formatter=formatter)
        self._queue = target_queue
        self._drop_lock = threading.Lock()
        self.dropped_count = 0

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

    def log(self, message: str, level: LogSeverity, context: LogContext) -> None:
        rendered = self.settings.prepare(message, level, context)
        if rendered is None:
            return
        self.perform_log(rendered, level, context)

    def perform_log(self, message: str, level: LogSeverity, context: LogContext) -> None:
        """
        Must not block or raise exceptions.
        """
        try:
            self._queue.put_nowait(QueuedRecord(message=message, level=level, context=context))
        except queue.Full:
            # Consumer is behind; newest records are the ones dropped
            with self._drop_lock:
                self.dropped_count += 1
