from __future__ import annotations

import time
from typing import Any, Mapping, Protocol

from logrelay.log_config import FormatterKey
from logrelay.log_context import LogContext
from logrelay.log_exceptions import InvalidOrMissingParameter
from logrelay.log_severity import LogSeverity


class LogFormatter(Protocol):
    """
    Turns an accepted message into the text a sink commits.

    render() is called at most once per accepted log call and
    must not raise; rendering problems are handled internally.
    """

    identifier: str

    def render(self, message: str, level: LogSeverity, context: LogContext) -> str:
        ...


class TemplateFormatter:
    """
    Formatter driven by a str.format template.

    Available fields: message, level, logger_name, timestamp (epoch
    seconds) and time (local time, formatted with `time_format`).
    """

    DEFAULT_TEMPLATE = "{time} [{level}] {logger_name}: {message}"
    DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

    def __init__(
        self,
        identifier: str,
        template: str = DEFAULT_TEMPLATE,
        *,
        time_format: str = DEFAULT_TIME_FORMAT,
    ):
        self.identifier = identifier
        self.template = template
        self.time_format = time_format

    def update_from_mapping(self, dictionary: Mapping[str, Any]) -> None:
        if FormatterKey.TEMPLATE.value in dictionary:
            template = dictionary[FormatterKey.TEMPLATE.value]
            if not isinstance(template, str):
                raise InvalidOrMissingParameter(FormatterKey.TEMPLATE.value)
            self.template = template

    def render(self, message: str, level: LogSeverity, context: LogContext) -> str:
        fields = {
            "message": message,
            "level": level.value,
            "logger_name": context.logger_name,
            "timestamp": context.timestamp,
            "time": time.strftime(self.time_format, time.localtime(context.timestamp)),
        }
        try:
            return self.template.format(**fields)
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            # A broken template must not cost the message itself
            return f"{message} [template error: {e!r}]"
