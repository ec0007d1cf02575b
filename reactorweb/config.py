"""Server settings taken from the command line."""

from __future__ import annotations

import getopt
import os
import re
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from reactorweb.logger import LOG_LEVEL_NAMES, LogLevel

_SHORT_OPTIONS = "hi:p:j:r:t:c:Lf:R:l:s:u:"
_LONG_OPTIONS = [
    "help",
    "ip=",
    "port=",
    "thread=",
    "path=",
    "timeout=",
    "maxconn=",
    "log",
    "logfname=",
    "logdir=",
    "loglevel=",
    "logrollsize=",
    "logflush=",
]
_LONG_TO_SHORT = {
    "--help": "-h",
    "--ip": "-i",
    "--port": "-p",
    "--thread": "-j",
    "--path": "-r",
    "--timeout": "-t",
    "--maxconn": "-c",
    "--log": "-L",
    "--logfname": "-f",
    "--logdir": "-R",
    "--loglevel": "-l",
    "--logrollsize": "-s",
    "--logflush": "-u",
}
_LEADING_INTEGER = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


class ConfigError(ValueError):
    """Raised for bad command-line arguments or an unusable root path."""


@dataclass
class Config:
    """Settings for the HTTP server and its logging."""

    ip: str = ""
    port: int = 8080
    num_thread: int = 5
    root_path: str = "./resources"
    timeout_seconds: int = 30
    max_connections: int = 10000
    log_enable: bool = False
    log_file_name: str = "HttpServerLog"
    log_dir: str = "./log"
    log_level: LogLevel = LogLevel.INFO
    log_roll_size: int = 500 * 1000 * 1000
    log_flush_interval_seconds: int = 2

    def summary(self) -> str:
        """Return the human-readable listing of the settings."""
        timeout = str(self.timeout_seconds) if self.timeout_seconds > 0 else "disable"
        lines = [
            "Options:",
            f"  ip: {self.ip or '0.0.0.0'}",
            f"  port: {self.port}",
            f"  the number of IO threads: {self.num_thread}",
            f"  the web root path: {self.root_path}",
            f"  the timeout seconds of http connection: {timeout}",
            f"  the maximum amount of concurrent connections: {self.max_connections}",
            f"  log enable: {int(self.log_enable)}",
        ]
        if self.log_enable:
            lines.append(f"  log level: {LOG_LEVEL_NAMES[self.log_level]}")
            if not self.log_file_name:
                lines.append("  log output: to stdout")
            else:
                lines += [
                    f"  log file name: {self.log_file_name}",
                    f"  log dir: {self.log_dir}",
                    "  log rollsze(max bytes in a single log file): "
                    f"{self.log_roll_size}",
                    "  log flush interval seconds (flush from buffer to log file): "
                    f"{self.log_flush_interval_seconds}",
                ]
        return "\n".join(lines) + "\n"


def help_text(program: str) -> str:
    return (
        f"Usage: {program} [options]\n"
        "Options:\n"
        "  -h, --help                Show this help message\n"
        "  -i, --ip <ip_address>     Set server ip address\n"
        "  -p, --port <num>          Set server port (default: 8080)\n"
        "  -j, --thread <num>        Set the number of IO threads(subReactors)\n"
        "  -r, --path <dir>          Set the root path of Web resources\n"
        "  -t, --timeout <num>       Set the timeout seconds of http connection\n"
        "  -c, --maxconn <num>       Set the maximum amount of concurrent connections allowed\n"
        "  -L, --log                 Set enable the log output\n"
        "  -f, --logfname <name>     Set the name of log file. When empty, logging to stdout\n"
        "  -R, --logdir <dir>        Set the dir of log file.\n"
        "  -l, --loglevel <num>      Set the log level. 0:TRACE, 1:DEBUG, 2:INFO, 3:WARN, 4:ERROR, 5:FATAL\n"
        "  -s, --logrollsze <num>    Set the max size of one single log file in bytes\n"
        "  -u, --logflush <num>      Set the interval seconds of flush loginfo from buffer to log file\n"
    )


def _to_int(text: str, option: str) -> int:
    match = _LEADING_INTEGER.match(text)
    if match is None:
        raise ConfigError(f"option {option} expects an integer, got {text!r}")
    value = int(match.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        raise ConfigError(f"option {option} value out of range: {text!r}")
    return value


def ensure_absolute_root_path(path: str) -> str:
    """Resolve ``path`` against the working directory to a canonical existing path."""
    if not path.startswith("/"):
        path = os.getcwd() + "/" + path
    try:
        return os.path.realpath(path, strict=True)
    except OSError as exc:
        raise ConfigError(f"cannot resolve root path: {path}") from exc


def parse_args(argv: Optional[Sequence[str]] = None) -> Config:
    """Build a :class:`Config` from command-line arguments (program name excluded).

    ``-h``/``--help`` prints the usage text and exits with status 0.
    """
    if argv is None:
        argv = sys.argv[1:]
    program = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "reactorweb"
    try:
        options, _ = getopt.gnu_getopt(list(argv), _SHORT_OPTIONS, _LONG_OPTIONS)
    except getopt.GetoptError as exc:
        raise ConfigError(f"Unknown option encountered: {exc}") from exc

    config = Config()
    for raw_option, value in options:
        option = _LONG_TO_SHORT.get(raw_option, raw_option)
        if option == "-h":
            sys.stdout.write(help_text(program))
            raise SystemExit(0)
        if option == "-i":
            config.ip = value
        elif option == "-p":
            config.port = _to_int(value, raw_option)
        elif option == "-j":
            config.num_thread = _to_int(value, raw_option)
        elif option == "-r":
            config.root_path = value
        elif option == "-t":
            config.timeout_seconds = _to_int(value, raw_option)
        elif option == "-c":
            config.max_connections = _to_int(value, raw_option)
        elif option == "-L":
            config.log_enable = True
        elif option == "-f":
            config.log_file_name = value
        elif option == "-R":
            config.log_dir = value
        elif option == "-l":
            level = _to_int(value, raw_option)
            if 0 <= level <= 5:
                config.log_level = LogLevel(level)
        elif option == "-s":
            config.log_roll_size = _to_int(value, raw_option)
        elif option == "-u":
            config.log_flush_interval_seconds = _to_int(value, raw_option)

    root = ensure_absolute_root_path(config.root_path)
    if root.endswith("/"):
        root = root[:-1]
    config.root_path = root
    return config