from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol

from logrelay.log_config import SinkKey, read_severity
from logrelay.log_context import LogContext
from logrelay.log_exceptions import InvalidOrMissingParameter
from logrelay.log_formatter import LogFormatter
from logrelay.log_severity import LogSeverity


class LogSink(Protocol):
    """
    Abstract destination for log messages.

    A LogSink may persist messages, print them, queue them,
    or forward them to another subsystem.
    """

    @property
    def identifier(self) -> str:
        ...

    @property
    def threshold(self) -> LogSeverity:
        ...

    def log(self, message: str, level: LogSeverity, context: LogContext) -> None:
        """
        Receive a message for processing.

        Decides internally whether to act.
        Must not raise exceptions outward.
        """

    def update_from_mapping(
        self,
        dictionary: Mapping[str, Any],
        available_formatters: Iterable[LogFormatter] = (),
    ) -> None:
        """
        Reconfigure the sink; raises ConfigurationError on bad input.
        """


class SinkSettings:
    """
    Identifier, threshold and formatter shared by every sink variant.

    Sinks hold one of these and delegate their second-stage filtering
    and rendering to prepare().
    """

    def __init__(
        self,
        identifier: str,
        *,
        threshold: LogSeverity = LogSeverity.DEBUG,
        formatter: Optional[LogFormatter] = None,
    ):
        self.identifier = identifier
        self.threshold = threshold
        self.formatter = formatter

    def accepts(self, level: LogSeverity) -> bool:
        return level >= self.threshold

    def prepare(self, message: str, level: LogSeverity, context: LogContext) -> Optional[str]:
        """
        Return the text to commit, or None when the level is filtered out.
        """
        if not self.accepts(level):
            return None
        if self.formatter is None:
            return message
        return self.formatter.render(message, level, context)

    def update_from_mapping(
        self,
        dictionary: Mapping[str, Any],
        available_formatters: Iterable[LogFormatter] = (),
    ) -> None:
        threshold = read_severity(dictionary, SinkKey.THRESHOLD_LEVEL.value)
        if threshold is not None:
            self.threshold = threshold

        formatter_id = dictionary.get(SinkKey.FORMATTER_ID.value)
        if formatter_id is not None:
            formatter = next(
                (f for f in available_formatters if f.identifier == formatter_id),
                None,
            )
            if formatter is None:
                raise InvalidOrMissingParameter(
                    SinkKey.FORMATTER_ID.value,
                    f"no formatter with identifier {formatter_id!r}",
                )
            self.formatter = formatter
