from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional, Union

from logrelay.diagnostics import DiagnosticReporter, report_diagnostic
from logrelay.log_config import RouterKey, read_severity, read_string_list
from logrelay.log_context import LogContext
from logrelay.log_exceptions import InvalidOrMissingParameter
from logrelay.log_severity import LogSeverity
from logrelay.log_sink import LogSink

MessageOrProducer = Union[str, Callable[[], str]]


class LogRouter:
    """
    Named fan-out point for log messages.

    A router holds a severity threshold and an ordered list of sinks.
    Messages below the threshold, or below every attached sink's own
    threshold, are discarded before the message is even built; accepted
    messages go to every sink in attachment order.
    """

    def __init__(
        self,
        name: str = "",
        *,
        threshold: LogSeverity = LogSeverity.DEBUG,
        sinks: Iterable[LogSink] = (),
        diagnostic: DiagnosticReporter = report_diagnostic,
    ):
        self._name = name
        self.threshold = threshold
        self._sinks: list[LogSink] = list(sinks)
        self._diagnostic = diagnostic

    @property
    def name(self) -> str:
        return self._name

    @property
    def sinks(self) -> tuple[LogSink, ...]:
        return tuple(self._sinks)

    def add_sink(self, sink: LogSink) -> None:
        """
        Attach a sink at the end of the dispatch order.
        """
        self._sinks.append(sink)

    def set_sinks(self, sinks: Iterable[LogSink]) -> None:
        self._sinks = list(sinks)

    def derive(self, name: str) -> "LogRouter":
        """
        Copy of this router under a new name. Sinks are shared, the list is not.
        """
        return LogRouter(
            name,
            threshold=self.threshold,
            sinks=self._sinks,
            diagnostic=self._diagnostic,
        )

    # -------------------------------------------------
    # Reconfiguration
    # -------------------------------------------------
    def update_from_mapping(
        self,
        dictionary: Mapping[str, Any],
        available_sinks: Iterable[LogSink],
    ) -> None:
        """
        Apply the Level and AppenderIds keys.

        The sink list is cleared before AppenderIds is resolved, so an
        unknown id leaves the router with no sinks at all.
        """
        threshold = read_severity(dictionary, RouterKey.LEVEL.value)
        if threshold is not None:
            self.threshold = threshold

        self._sinks.clear()
        sink_ids = read_string_list(dictionary, RouterKey.APPENDER_IDS.value)
        if sink_ids is None:
            return

        available = list(available_sinks)
        resolved = []
        for sink_id in sink_ids:
            sink = find_sink(available, sink_id)
            if sink is None:
                raise InvalidOrMissingParameter(
                    RouterKey.APPENDER_IDS.value,
                    f"no sink with identifier {sink_id!r}",
                )
            resolved.append(sink)
        self._sinks.extend(resolved)

    # -------------------------------------------------
    # Logging
    # -------------------------------------------------
    def will_emit(self, level: LogSeverity) -> bool:
        if level < self.threshold:
            return False
        return any(level >= sink.threshold for sink in self._sinks)

    def submit(self, message: MessageOrProducer, level: LogSeverity) -> None:
        """
        Submit a message, or a zero-argument callable producing it.

        The callable is only invoked when at least one sink would accept
        the level, and then exactly once. Never raises.
        """
        if not self.will_emit(level):
            return

        if callable(message):
            try:
                message = message()
            except Exception as e:
                self._diagnostic(f"Router '{self._name}' dropped a message, producer raised: {e!r}")
                return

        context = LogContext(logger_name=self._name, level=level)
        for sink in list(self._sinks):
            try:
                sink.log(message, level, context)
            except Exception as e:
                # Logging must never destabilize the caller
                self._diagnostic(f"Sink '{sink.identifier}' raised while logging: {e!r}")

    def debug(self, message: MessageOrProducer) -> None:
        self.submit(message, LogSeverity.DEBUG)

    def info(self, message: MessageOrProducer) -> None:
        self.submit(message, LogSeverity.INFO)

    def warning(self, message: MessageOrProducer) -> None:
        self.submit(message, LogSeverity.WARNING)

    def error(self, message: MessageOrProducer) -> None:
        self.submit(message, LogSeverity.ERROR)

    def fatal(self, message: MessageOrProducer) -> None:
        self.submit(message, LogSeverity.FATAL)


def find_sink(sinks: Iterable[LogSink], identifier: str) -> Optional[LogSink]:
    return next((s for s in sinks if s.identifier == identifier), None)
