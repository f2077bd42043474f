import os
import threading
import time

from logrelay.file_log_sink import FileLogSink
from logrelay.log_severity import LogSeverity


def read(path) -> str:
    return path.read_text(encoding="utf-8")


def names_in(directory) -> list[str]:
    return sorted(os.listdir(directory))


def test_size_rotation_moves_old_content_to_dot_one(log_path, context) -> None:
    sink = FileLogSink("test.sink", str(log_path), max_file_size=10)
    sink.log("0123456789", LogSeverity.INFO, context)

    sink.log("next", LogSeverity.INFO, context)

    assert names_in(log_path.parent) == ["app.log", "app.log.1"]
    assert read(log_path.parent / "app.log.1") == "0123456789\n"
    assert read(log_path) == "next\n"


def test_no_rotation_below_size_limit(log_path, context) -> None:
    sink = FileLogSink("test.sink", str(log_path), max_file_size=100)

    for i in range(5):
        sink.log(f"line {i}", LogSeverity.INFO, context)

    assert names_in(log_path.parent) == ["app.log"]


def test_zero_size_limit_disables_rotation(log_path, context) -> None:
    sink = FileLogSink("test.sink", str(log_path), max_file_size=0)

    sink.log("one", LogSeverity.INFO, context)
    sink.log("two", LogSeverity.INFO, context)

    assert names_in(log_path.parent) == ["app.log"]


def test_size_of_preexisting_file_counts_towards_limit(log_path, context) -> None:
    log_path.parent.mkdir(parents=True)
    log_path.write_text("x" * 50 + "\n", encoding="utf-8")
    sink = FileLogSink("test.sink", str(log_path), max_file_size=20)

    sink.log("first", LogSeverity.INFO, context)
    sink.log("second", LogSeverity.INFO, context)

    assert read(log_path.parent / "app.log.1") == "x" * 50 + "\nfirst\n"
    assert read(log_path) == "second\n"


def test_rotated_files_shift_up_with_unbounded_retention(log_path, context) -> None:
    sink = FileLogSink("test.sink", str(log_path), max_file_size=1)

    for i in range(4):
        sink.log(f"m{i}", LogSeverity.INFO, context)

    assert names_in(log_path.parent) == ["app.log", "app.log.1", "app.log.2", "app.log.3"]
    assert read(log_path) == "m3\n"
    assert read(log_path.parent / "app.log.1") == "m2\n"
    assert read(log_path.parent / "app.log.3") == "m0\n"


def test_retention_bound_deletes_oldest_files(log_path, context) -> None:
    sink = FileLogSink("test.sink", str(log_path), max_file_size=1, max_rotated_files=2)

    for i in range(6):
        sink.log(f"m{i}", LogSeverity.INFO, context)
        rotated = [n for n in os.listdir(log_path.parent) if n.startswith("app.log.")]
        assert len(rotated) <= 2

    assert names_in(log_path.parent) == ["app.log", "app.log.1", "app.log.2"]
    assert read(log_path) == "m5\n"
    assert read(log_path.parent / "app.log.1") == "m4\n"
    assert read(log_path.parent / "app.log.2") == "m3\n"


def test_zero_retention_discards_the_active_file(log_path, context) -> None:
    sink = FileLogSink("test.sink", str(log_path), max_file_size=1, max_rotated_files=0)

    sink.log("old", LogSeverity.INFO, context)
    sink.log("new", LogSeverity.INFO, context)

    assert names_in(log_path.parent) == ["app.log"]
    assert read(log_path) == "new\n"


def test_rotation_orders_suffixes_numerically(log_path, context) -> None:
    directory = log_path.parent
    directory.mkdir(parents=True)
    log_path.write_text("active\n", encoding="utf-8")
    for n in range(1, 11):
        (directory / f"app.log.{n}").write_text(f"r{n}\n", encoding="utf-8")
    sink = FileLogSink("test.sink", str(log_path), max_file_size=1)

    sink.log("first", LogSeverity.INFO, context)
    sink.log("second", LogSeverity.INFO, context)

    assert read(log_path) == "second\n"
    assert read(directory / "app.log.1") == "active\nfirst\n"
    assert read(directory / "app.log.3") == "r2\n"
    assert read(directory / "app.log.11") == "r10\n"


def test_rotation_leaves_unrelated_files_alone(log_path, context) -> None:
    directory = log_path.parent
    directory.mkdir(parents=True)
    (directory / "other.log").write_text("untouched\n", encoding="utf-8")
    sink = FileLogSink("test.sink", str(log_path), max_file_size=1, max_rotated_files=0)

    sink.log("a", LogSeverity.INFO, context)
    sink.log("b", LogSeverity.INFO, context)

    assert read(directory / "other.log") == "untouched\n"


def test_age_rotation(log_path, context) -> None:
    sink = FileLogSink("test.sink", str(log_path), max_file_age=0.2)
    sink.log("old", LogSeverity.INFO, context)
    sink.log("still fresh", LogSeverity.INFO, context)
    assert names_in(log_path.parent) == ["app.log"]

    time.sleep(0.3)
    sink.log("new", LogSeverity.INFO, context)

    assert read(log_path.parent / "app.log.1") == "old\nstill fresh\n"
    assert read(log_path) == "new\n"


def test_rotation_after_path_change_uses_new_file(tmp_path, context) -> None:
    first_path = tmp_path / "first.log"
    second_path = tmp_path / "second.log"
    sink = FileLogSink("test.sink", str(first_path), max_file_size=5)
    sink.log("0123456789", LogSeverity.INFO, context)

    sink.set_file_path(str(second_path))
    sink.log("a", LogSeverity.INFO, context)

    assert names_in(tmp_path) == ["first.log", "second.log"]


def test_failed_rotation_keeps_logging_and_reports_once(log_path, context, diagnostics, monkeypatch) -> None:
    sink = FileLogSink("test.sink", str(log_path), max_file_size=1, diagnostic=diagnostics)
    sink.log("m0", LogSeverity.INFO, context)

    def refuse_rename(src, dst):
        raise PermissionError(13, "Permission denied", src)

    monkeypatch.setattr(os, "rename", refuse_rename)
    sink.log("m1", LogSeverity.INFO, context)
    sink.log("m2", LogSeverity.INFO, context)

    assert read(log_path) == "m0\nm1\nm2\n"
    assert len(diagnostics.messages) == 1
    assert "rotate" in diagnostics.messages[0]

    monkeypatch.undo()
    sink.log("m3", LogSeverity.INFO, context)

    assert read(log_path.parent / "app.log.1") == "m0\nm1\nm2\n"
    assert read(log_path) == "m3\n"


def test_diagnostic_may_log_back_into_the_failing_sink(log_path, context, monkeypatch) -> None:
    reported = []

    def log_back(message: str) -> None:
        reported.append(message)
        sink.log(message, LogSeverity.ERROR, context)

    sink = FileLogSink("test.sink", str(log_path), max_file_size=1, diagnostic=log_back)
    sink.log("m0", LogSeverity.INFO, context)

    def refuse_rename(src, dst):
        raise PermissionError(13, "Permission denied", src)

    monkeypatch.setattr(os, "rename", refuse_rename)
    writer = threading.Thread(target=sink.log, args=("m1", LogSeverity.INFO, context), daemon=True)
    writer.start()
    writer.join(timeout=5)

    assert not writer.is_alive()
    assert len(reported) == 1
    assert read(log_path) == f"m0\nm1\n{reported[0]}\n"
