"""
Module: file_log_sink.py
Location: src/logrelay/

Log sink that appends messages to a single on-disk file.

The file is created lazily on the first write (parent directories
included), re-created if it disappears between writes, and rotated
when it grows past `max_file_size` bytes or gets older than
`max_file_age` seconds. Rotated files are named `{name}.1` (most
recent), `{name}.2`, ... and at most `max_rotated_files` of them are
kept.

Failures never reach the caller. A file that cannot be opened is
reported once through the diagnostics channel and messages are dropped
until a later attempt succeeds or the path changes.
"""

from __future__ import annotations

import codecs
import os
import re
import threading
import time
from typing import Any, BinaryIO, Iterable, Mapping, Optional

from logrelay.diagnostics import DiagnosticReporter, report_diagnostic
from logrelay.log_config import (
    PLACEHOLDER_FILE_PATH,
    FileSinkKey,
    read_non_negative_count,
    read_non_negative_number,
)
from logrelay.log_context import LogContext
from logrelay.log_exceptions import (
    ConfigurationError,
    InvalidOrMissingParameter,
    ResourceError,
    RotationError,
)
from logrelay.log_formatter import LogFormatter
from logrelay.log_severity import LogSeverity
from logrelay.log_sink import SinkSettings


class FileLogSink:
    """
    Thread-safe file sink with size/age rotation and bounded retention.

    Rotation check, handle creation and the write itself run as one
    critical section, so concurrent callers never interleave bytes and
    never observe a half-rotated file.
    """

    def __init__(
        self,
        identifier: str,
        file_path: str,
        *,
        max_file_size: Optional[int] = None,
        max_file_age: Optional[float] = None,
        max_rotated_files: Optional[int] = None,
        threshold: LogSeverity = LogSeverity.DEBUG,
        formatter: Optional[LogFormatter] = None,
        encoding: str = "utf-8",
        encoding_errors: str = "ignore",
        diagnostic: DiagnosticReporter = report_diagnostic,
    ):
        self.settings = SinkSettings(identifier, threshold=threshold, formatter=formatter)

        # Rotation policy. None or 0 disables a trigger; None retention keeps every file.
        self.max_file_size = max_file_size
        self.max_file_age = max_file_age
        self.max_rotated_files = max_rotated_files

        # Text to bytes policy. "ignore" drops characters the encoding cannot represent.
        try:
            codecs.lookup(encoding)
            codecs.lookup_error(encoding_errors)
        except LookupError as e:
            raise ConfigurationError(f"File sink '{identifier}': {e}") from e
        self.encoding = encoding
        self.encoding_errors = encoding_errors

        self._diagnostic = diagnostic
        self._lock = threading.Lock()

        self._file_path = _normalize_path(file_path)
        self._file: Optional[BinaryIO] = None
        self._current_size: Optional[int] = None
        self._current_creation_time: Optional[float] = None
        self._did_report_failure = False
        self._did_report_rotation_failure = False
        # Diagnostics raised under the lock, emitted once it is released
        self._pending_diagnostics: list[str] = []

    # -------------------------------------------------
    # Identity / settings
    # -------------------------------------------------
    @property
    def identifier(self) -> str:
        return self.settings.identifier

    @property
    def threshold(self) -> LogSeverity:
        return self.settings.threshold

    @threshold.setter
    def threshold(self, value: LogSeverity) -> None:
        self.settings.threshold = value

    @property
    def formatter(self) -> Optional[LogFormatter]:
        return self.settings.formatter

    @property
    def file_path(self) -> str:
        return self._file_path

    def set_file_path(self, file_path: str) -> None:
        """
        Redirect the sink to another file.

        The current handle is closed, cached file state is cleared and
        failure reporting is re-armed. The next write opens the new path.
        """
        with self._lock:
            self._close_file()
            self._file_path = _normalize_path(file_path)
            self._current_size = None
            self._current_creation_time = None
            self._did_report_failure = False
            self._did_report_rotation_failure = False

    def update_from_mapping(
        self,
        dictionary: Mapping[str, Any],
        available_formatters: Iterable[LogFormatter] = (),
    ) -> None:
        """
        Apply FilePath, MaxFileAge, MaxFileSize and MaxRotatedFiles,
        plus the keys shared by all sinks.

        FilePath is required. When it is missing the sink is pointed at a
        placeholder path before InvalidOrMissingParameter is raised.
        """
        self.settings.update_from_mapping(dictionary, available_formatters)

        self.max_file_age = read_non_negative_number(dictionary, FileSinkKey.MAX_FILE_AGE.value)
        self.max_file_size = read_non_negative_count(dictionary, FileSinkKey.MAX_FILE_SIZE.value)
        self.max_rotated_files = read_non_negative_count(dictionary, FileSinkKey.MAX_ROTATED_FILES.value)

        file_path = dictionary.get(FileSinkKey.FILE_PATH.value)
        if isinstance(file_path, str) and file_path:
            self.set_file_path(file_path)
        else:
            self.set_file_path(PLACEHOLDER_FILE_PATH)
            raise InvalidOrMissingParameter(
                FileSinkKey.FILE_PATH.value,
                f"missing for file sink '{self.identifier}'",
            )

    # -------------------------------------------------
    # Logging
    # -------------------------------------------------
    def log(self, message: str, level: LogSeverity, context: LogContext) -> None:
        rendered = self.settings.prepare(message, level, context)
        if rendered is None:
            return
        self.perform_log(rendered, level, context)

    def perform_log(self, message: str, level: LogSeverity, context: LogContext) -> None:
        """
        Append one message to the file, rotating first if needed.

        Safe to call from multiple threads. Never raises.
        """
        if not message.endswith("\n"):
            message = message + "\n"

        with self._lock:
            self._write_locked(message)
            diagnostics, self._pending_diagnostics = self._pending_diagnostics, []

        for text in diagnostics:
            self._diagnostic(text)

    def close(self) -> None:
        """
        Close the underlying file handle. A later write reopens it.
        """
        with self._lock:
            self._close_file()

    # -------------------------------------------------
    # Handle lifecycle (caller holds self._lock)
    # -------------------------------------------------
    def _write_locked(self, message: str) -> None:
        try:
            data = message.encode(self.encoding, self.encoding_errors)
        except (LookupError, UnicodeError) as e:
            self._report_failure(
                f"Sink '{self.identifier}' dropped a message it could not encode "
                f"as {self.encoding!r} (errors={self.encoding_errors!r}): {e}"
            )
            return

        if self._should_rotate():
            self._rotate_file_quietly()

        if not self._ensure_file_open():
            return

        try:
            self._file.write(data)
            self._file.flush()
        except (OSError, ValueError) as e:
            self._close_file()
            self._report_failure(str(ResourceError(self.identifier, self._file_path, e)))
            return

        self._current_size += len(data)

    def _ensure_file_open(self) -> bool:
        """
        Returns True if the file handle can be used.
        """
        try:
            if not os.path.exists(self._file_path):
                self._close_file()
                os.makedirs(os.path.dirname(self._file_path), exist_ok=True)
                self._file = open(self._file_path, "ab")
                self._current_creation_time = time.time()
                self._current_size = 0

            if self._file is None:
                self._file = open(self._file_path, "ab")
                self._current_size, self._current_creation_time = _file_attributes(self._file)

            self._did_report_failure = False

        except (OSError, ValueError) as e:
            self._close_file()
            self._report_failure(str(ResourceError(self.identifier, self._file_path, e)))

        return self._file is not None

    def _close_file(self) -> None:
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError:
            # Data already handed to the OS; the handle is dropped either way
            pass
        self._file = None

    def _report_failure(self, text: str) -> None:
        if self._did_report_failure:
            return
        self._did_report_failure = True
        self._pending_diagnostics.append(text)

    # -------------------------------------------------
    # Rotation (caller holds self._lock)
    # -------------------------------------------------
    def _should_rotate(self) -> bool:
        return self._should_rotate_for_age() or self._should_rotate_for_size()

    def _should_rotate_for_age(self) -> bool:
        if not self.max_file_age or self._current_creation_time is None:
            return False
        return time.time() - self._current_creation_time >= self.max_file_age

    def _should_rotate_for_size(self) -> bool:
        if not self.max_file_size or self._current_size is None:
            return False
        return self._current_size >= self.max_file_size

    def _rotate_file_quietly(self) -> None:
        try:
            self._rotate_file()
        except RotationError as e:
            if not self._did_report_rotation_failure:
                self._did_report_rotation_failure = True
                self._pending_diagnostics.append(str(e))
        else:
            self._did_report_rotation_failure = False

    def _rotate_file(self) -> None:
        """
        Shift `{name}` -> `{name}.1` -> `{name}.2` ..., deleting files
        whose new index would exceed max_rotated_files.
        """
        self._close_file()
        self._current_size = None
        self._current_creation_time = None

        # Nothing to archive; the next write recreates the file
        if not os.path.isfile(self._file_path):
            return

        directory, base_name = os.path.split(self._file_path)
        try:
            names = os.listdir(directory)
        except OSError as e:
            raise RotationError(self.identifier, self._file_path, e) from e

        matching = sorted((n for n in names if n.startswith(base_name)), key=_natural_sort_key)

        index = len(matching)
        for name in reversed(matching):
            current_path = os.path.join(directory, name)
            try:
                if self.max_rotated_files is not None and index > self.max_rotated_files:
                    os.remove(current_path)
                else:
                    os.rename(current_path, os.path.join(directory, f"{base_name}.{index}"))
            except OSError as e:
                raise RotationError(self.identifier, current_path, e) from e
            index -= 1


def _normalize_path(file_path: str) -> str:
    return os.path.abspath(os.path.expanduser(file_path))


def _file_attributes(handle: BinaryIO) -> tuple[int, float]:
    """
    Size and creation time of an open file, falling back to 0 / now.
    """
    try:
        stat = os.fstat(handle.fileno())
    except OSError:
        return 0, time.time()
    # Birth time is only exposed on some platforms (macOS, BSD, Windows)
    return stat.st_size, getattr(stat, "st_birthtime", None) or time.time()


_DIGIT_RUNS = re.compile(r"(\d+)")


def _natural_sort_key(name: str):
    """
    Sort key comparing digit runs numerically: "app.log.2" < "app.log.10".
    """
    # split() with a capturing group puts the digit runs at odd indices
    parts = [
        int(part) if index % 2 else part.casefold()
        for index, part in enumerate(_DIGIT_RUNS.split(name))
    ]
    return parts, name
