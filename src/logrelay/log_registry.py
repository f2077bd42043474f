import threading
from typing import Any, Dict, Mapping, Optional

from logrelay.console_log_sink import ConsoleLogSink
from logrelay.log_exceptions import ConfigurationError
from logrelay.log_formatter import LogFormatter
from logrelay.log_router import LogRouter
from logrelay.log_sink import LogSink


class LogRegistry:
    """
    Owner of the formatters, sinks and routers of one logging configuration.

    Responsibilities:
      - Hold components by identifier (sinks and formatters) or name (routers)
      - Hand out routers by name, deriving unknown names from the root router
      - Apply mapping-based reconfiguration with ids resolved against itself
      - Close sink resources on shutdown
    """

    DEFAULT_SINK_ID = "defaultAppender"

    def __init__(self, root: Optional[LogRouter] = None):
        self._lock = threading.RLock()
        self._formatters: Dict[str, LogFormatter] = {}
        self._sinks: Dict[str, LogSink] = {}
        self._routers: Dict[str, LogRouter] = {}

        if root is None:
            root = LogRouter("", sinks=[ConsoleLogSink(self.DEFAULT_SINK_ID)])
        self.root = root

    # -------------------------------------------------
    # Registration / lookup
    # -------------------------------------------------
    def register_formatter(self, formatter: LogFormatter) -> None:
        with self._lock:
            if formatter.identifier in self._formatters:
                raise ConfigurationError(f"Duplicate formatter identifier: {formatter.identifier}")
            self._formatters[formatter.identifier] = formatter

    def register_sink(self, sink: LogSink) -> None:
        with self._lock:
            if sink.identifier in self._sinks:
                raise ConfigurationError(f"Duplicate sink identifier: {sink.identifier}")
            self._sinks[sink.identifier] = sink

    def get_formatter(self, identifier: str) -> Optional[LogFormatter]:
        with self._lock:
            return self._formatters.get(identifier)

    def get_sink(self, identifier: str) -> Optional[LogSink]:
        with self._lock:
            return self._sinks.get(identifier)

    def get_router(self, name: str) -> LogRouter:
        """
        Return the router registered under `name`.

        Unknown names get a copy of the root router, which is kept
        so later lookups return the same instance.
        """
        if name == self.root.name:
            return self.root
        with self._lock:
            router = self._routers.get(name)
            if router is None:
                router = self.root.derive(name)
                self._routers[name] = router
            return router

    # -------------------------------------------------
    # Reconfiguration
    # -------------------------------------------------
    def configure_formatter(self, identifier: str, dictionary: Mapping[str, Any]) -> None:
        formatter = self.get_formatter(identifier)
        if formatter is None:
            raise ConfigurationError(f"Unknown formatter identifier: {identifier}")
        update = getattr(formatter, "update_from_mapping", None)
        if update is None:
            raise ConfigurationError(f"Formatter '{identifier}' cannot be reconfigured")
        update(dictionary)

    def configure_sink(self, identifier: str, dictionary: Mapping[str, Any]) -> None:
        sink = self.get_sink(identifier)
        if sink is None:
            raise ConfigurationError(f"Unknown sink identifier: {identifier}")
        with self._lock:
            formatters = list(self._formatters.values())
        sink.update_from_mapping(dictionary, formatters)

    def configure_router(self, name: str, dictionary: Mapping[str, Any]) -> LogRouter:
        router = self.get_router(name)
        with self._lock:
            sinks = list(self._sinks.values())
        router.update_from_mapping(dictionary, sinks)
        return router

    # -------------------------------------------------
    # Shutdown
    # -------------------------------------------------
    def close(self) -> None:
        """
        Close every registered sink that holds a resource.
        """
        with self._lock:
            sinks = list(self._sinks.values())
        for sink in sinks:
            close = getattr(sink, "close", None)
            if callable(close):
                close()
