import pytest

from logrelay.log_context import LogContext
from logrelay.log_severity import LogSeverity


class DiagnosticRecorder:
    """
    Stand-in for the diagnostics channel that keeps every message.
    """

    def __init__(self):
        self.messages: list[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture()
def diagnostics() -> DiagnosticRecorder:
    return DiagnosticRecorder()


@pytest.fixture()
def context() -> LogContext:
    return LogContext(logger_name="test.router", level=LogSeverity.DEBUG)


@pytest.fixture()
def log_path(tmp_path):
    """
    Path of a log file that does not exist yet.
    """
    return tmp_path / "logs" / "app.log"
