class LogRelayError(Exception):
    pass


class ConfigurationError(LogRelayError):
    """
    Raised synchronously from reconfiguration when a mapping is missing a
    required key, holds an unparseable value, or references an unknown id.
    Never produced during steady-state logging.
    """


class InvalidOrMissingParameter(ConfigurationError):
    def __init__(self, parameter_name, details=None):
        self.parameter_name = parameter_name
        self.details = details
        reason = f"Invalid or missing parameter '{parameter_name}'"
        if details:
            reason = f"{reason}: {details}"
        super().__init__(reason)


class UnknownLevelName(LogRelayError, ValueError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Unknown severity name: {name!r}")


class ResourceError(LogRelayError):
    """
    Filesystem failure while opening or creating a sink's target file.
    Caught inside the sink; only ever surfaces through diagnostics.
    """

    def __init__(self, sink_id, path, reason):
        self.sink_id = sink_id
        self.path = path
        self.reason = reason
        super().__init__(f"Sink '{sink_id}' failed to open log file {path}: {reason}")


class RotationError(ResourceError):
    """
    Filesystem failure while renaming or deleting files during rotation.
    """

    def __init__(self, sink_id, path, reason):
        super().__init__(sink_id, path, reason)
        self.args = (f"Sink '{sink_id}' failed to rotate log file {path}: {reason}",)
