from enum import Enum

from logrelay.log_exceptions import UnknownLevelName


class LogSeverity(Enum):
    """
    Semantic severity level for log messages.

    Used by routers and sinks for threshold filtering.
    Members are totally ordered from DEBUG (lowest) to FATAL (highest);
    the value of each member is the name accepted in configuration.
    """

    DEBUG = "Debug"      # Developer-focused diagnostic information
    INFO = "Info"        # Normal system operation
    WARNING = "Warning"  # Unexpected but recoverable condition
    ERROR = "Error"      # Operation failed, system continued
    FATAL = "Fatal"      # System integrity at risk

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def from_name(cls, name: str) -> "LogSeverity":
        """
        Parse a severity from its configuration name.

        Matching is case-sensitive ("Warning" is valid, "warning" is not).
        """
        try:
            return cls(name)
        except ValueError as e:
            raise UnknownLevelName(name) from e

    def __lt__(self, other):
        if not isinstance(other, LogSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, LogSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, LogSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, LogSeverity):
            return NotImplemented
        return self.rank >= other.rank


_RANKS = {severity: index for index, severity in enumerate(LogSeverity)}
