"""
Module: log_config.py
Location: src/logrelay/

Configuration keys consumed when routers, sinks and formatters are
updated from a loosely typed mapping, and the helpers that coerce the
mapping's values into typed settings.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Any, Mapping, Optional

from logrelay.log_exceptions import InvalidOrMissingParameter
from logrelay.log_severity import LogSeverity


class RouterKey(str, Enum):
    LEVEL = "Level"
    APPENDER_IDS = "AppenderIds"


class SinkKey(str, Enum):
    THRESHOLD_LEVEL = "ThresholdLevel"
    FORMATTER_ID = "FormatterId"


class FileSinkKey(str, Enum):
    FILE_PATH = "FilePath"
    MAX_FILE_AGE = "MaxFileAge"
    MAX_FILE_SIZE = "MaxFileSize"
    MAX_ROTATED_FILES = "MaxRotatedFiles"


class ConsoleSinkKey(str, Enum):
    ERROR_THRESHOLD_LEVEL = "ErrorThresholdLevel"


class FormatterKey(str, Enum):
    TEMPLATE = "Template"


# Path assigned to a file sink whose mapping lacks FilePath, before the update raises.
PLACEHOLDER_FILE_PATH = os.devnull


def read_severity(dictionary: Mapping[str, Any], key: str) -> Optional[LogSeverity]:
    """
    Return the severity named under `key`, or None when the key is absent.
    """
    if key not in dictionary:
        return None

    value = dictionary[key]
    if isinstance(value, LogSeverity):
        return value
    if not isinstance(value, str):
        raise InvalidOrMissingParameter(key, f"expected a severity name, got {type(value).__name__}")

    try:
        return LogSeverity.from_name(value)
    except ValueError as e:
        raise InvalidOrMissingParameter(key, str(e)) from e


def read_non_negative_number(dictionary: Mapping[str, Any], key: str) -> Optional[float]:
    """
    Return the number stored under `key`, or None when the key is absent.

    Numeric strings are accepted. Booleans and negative values are rejected.
    """
    if key not in dictionary or dictionary[key] is None:
        return None

    value = dictionary[key]
    if isinstance(value, bool):
        raise InvalidOrMissingParameter(key, "expected a number, got bool")

    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidOrMissingParameter(key, f"expected a number, got {value!r}") from e

    if number < 0:
        raise InvalidOrMissingParameter(key, "must not be negative")
    return number


def read_non_negative_count(dictionary: Mapping[str, Any], key: str) -> Optional[int]:
    number = read_non_negative_number(dictionary, key)
    if number is None:
        return None
    if not number.is_integer():
        raise InvalidOrMissingParameter(key, f"expected a whole number, got {number}")
    return int(number)


def read_string_list(dictionary: Mapping[str, Any], key: str) -> Optional[list[str]]:
    if key not in dictionary:
        return None

    value = dictionary[key]
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise InvalidOrMissingParameter(key, "expected a list of identifiers")
    if not all(isinstance(item, str) for item in value):
        raise InvalidOrMissingParameter(key, "identifiers must be strings")
    return list(value)
