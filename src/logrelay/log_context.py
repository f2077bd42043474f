from dataclasses import dataclass, field
import time

from logrelay.log_severity import LogSeverity


@dataclass(frozen=True)
class LogContext:
    """
    Metadata handed to every sink alongside an accepted message.

    Built once per submitted message by the router, so all sinks
    attached to that router observe the same record.
    """

    logger_name: str
    # Name of the router the message was submitted to (may be empty).

    level: LogSeverity
    # Severity the message was submitted with.

    timestamp: float = field(default_factory=time.time)
    # Wall-clock time of submission, available to formatters.
