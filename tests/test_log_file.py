import os
import time
from unittest import mock

import pytest

from reactorweb.log_file import (
    ROLL_INTERVAL_SECONDS,
    AppendFile,
    LogFile,
    ensure_dir_exists,
    log_file_name,
)

START = ROLL_INTERVAL_SECONDS * 20000 + 100


def test_log_file_name_format():
    now = time.mktime((2024, 1, 2, 3, 4, 5, 0, 0, -1))
    assert log_file_name("app", now) == f"app.20240102-030405.{os.getpid()}.log"


def test_log_file_name_defaults_to_now():
    now = time.mktime((2024, 1, 2, 3, 4, 5, 0, 0, -1))
    with mock.patch("time.time", return_value=now):
        name = log_file_name("srv")
    assert name == f"srv.20240102-030405.{os.getpid()}.log"


def test_ensure_dir_exists_creates_nested(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    ensure_dir_exists(str(target))
    assert target.is_dir()
    ensure_dir_exists(str(target))
    assert target.is_dir()


def test_ensure_dir_exists_rejects_file(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(NotADirectoryError):
        ensure_dir_exists(str(blocker))


def test_append_file_counts_and_writes(tmp_path):
    path = tmp_path / "out.log"
    with AppendFile(str(path)) as out:
        out.append(b"hello ")
        out.append("world")
        assert out.written_bytes() == 11
        out.flush()
    assert path.read_bytes() == b"hello world"


def test_append_file_appends_to_existing(tmp_path):
    path = tmp_path / "out.log"
    path.write_bytes(b"old\n")
    out = AppendFile(str(path))
    out.append(b"new\n")
    out.close()
    assert path.read_bytes() == b"old\nnew\n"
    assert out.written_bytes() == 4


def test_log_file_rejects_slash_in_basename(tmp_path):
    with pytest.raises(ValueError):
        LogFile("a/b", str(tmp_path), 1000)


def test_log_file_writes_into_created_dir(tmp_path):
    directory = tmp_path / "logs"
    with LogFile("server", str(directory), 1000) as log:
        log.append(b"line one\n")
        log.flush()
        content = open(log.filename, "rb").read()
    assert content == b"line one\n"
    assert os.path.dirname(log.filename) == str(directory)


def test_roll_file_same_second_is_refused(tmp_path):
    with mock.patch("time.time", return_value=float(START)):
        log = LogFile("server", str(tmp_path), 1000)
        assert log.roll_file() is False
    log.close()
    assert len(os.listdir(tmp_path)) == 1


def test_rolls_when_size_exceeded(tmp_path):
    with mock.patch("time.time", return_value=float(START)):
        log = LogFile("server", str(tmp_path), 10, thread_safe=False)
    first = log.filename
    with mock.patch("time.time", return_value=float(START + 1)):
        log.append(b"x" * 20)
    log.append(b"after\n")
    log.close()
    assert log.filename != first
    assert sorted(os.listdir(tmp_path)) == sorted(
        [os.path.basename(first), os.path.basename(log.filename)]
    )
    assert open(first, "rb").read() == b"x" * 20
    assert open(log.filename, "rb").read() == b"after\n"


def test_rolls_when_day_changes(tmp_path):
    with mock.patch("time.time", return_value=float(START)):
        log = LogFile("server", str(tmp_path), 10**9, check_every_n=1)
    first = log.filename
    with mock.patch("time.time", return_value=float(START + ROLL_INTERVAL_SECONDS)):
        log.append(b"next day\n")
        log.append(b"more\n")
    log.close()
    assert log.filename != first
    assert len(os.listdir(tmp_path)) == 2
    assert open(log.filename, "rb").read() == b"more\n"