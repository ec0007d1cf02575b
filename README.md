# reactorweb

Building blocks for a reactor-style network server and the pieces a small
static-file HTTP server needs. The package uses only the standard library.

| Module | What it provides |
| --- | --- |
| `reactorweb.buffer` | `Buffer`: a growable byte buffer with read/write positions and a small prependable area |
| `reactorweb.http_parser` | `HttpParser`, `ParseResult`: an incremental HTTP/1.x request parser |
| `reactorweb.http_message` | `HttpRequest`, `HttpResponse`, `HttpMethod`, `HttpStatusCode`, `content_type()` and status-text helpers |
| `reactorweb.channel` | `Channel`, `ChannelState`, `events_to_string()`: one file descriptor's interest set and callbacks |
| `reactorweb.epoller` | `Epoller`: readiness polling over registered channels (epoll, or `poll` where epoll is missing) |
| `reactorweb.inet_address` | `InetAddress`, `local_address()`, `peer_address()`: IPv4/IPv6 endpoints |
| `reactorweb.latch` | `CountDownLatch` |
| `reactorweb.threads` | `Thread` (start returns once the thread runs), `current_tid()`, `current_thread_name()`, `is_main_thread()` |
| `reactorweb.logger` | Levelled logging with pluggable output and flush callbacks |
| `reactorweb.log_stream` | `LogStream`, `FixedBuffer`, `fmt()`: bounded formatting of a log line |
| `reactorweb.log_file` | `LogFile`, `AppendFile`: log files rolled by size and by day |
| `reactorweb.async_logger` | `AsyncLogger`: a background thread that writes batched log lines to files |
| `reactorweb.config` | `parse_args()`, `help_text()`, `Config`, `ConfigError`: command-line settings |

## Buffers

```python
from reactorweb.buffer import Buffer

buf = Buffer(1024)
buf.append(b"GET / HTTP/1.1\r\n\r\n")
print(buf.readable_bytes())      # 18
data = buf.retrieve_all_as_bytes()
```

`Buffer.read_fd(fd)` reads once from a descriptor; data that does not fit is
gathered into a 64 KiB side buffer and appended.

## Parsing requests

`HttpParser.parse(data)` returns a `(ParseResult, consumed)` pair. Drop the
consumed bytes from your buffer and call again with the rest when more data
arrives. A field that is cut off at the end of the input is not consumed and
is parsed again from its start on the next call.

```python
from reactorweb.buffer import Buffer
from reactorweb.http_parser import HttpParser, ParseResult

parser = HttpParser()
buf = Buffer()
for piece in (b"GET /index.html HTTP/1.1\r\nHost: exa", b"mple.com\r\n\r\n"):
    buf.append(piece)
    result, consumed = parser.parse(buf.peek())
    buf.retrieve(consumed)

if result is ParseResult.SUCCESS:
    print(parser.method, parser.uri, parser.headers, parser.keep_alive)
    print(parser.encode())
```

`ParseResult.ERROR` means the request is malformed (for example an unknown
HTTP version, a header name of 128 bytes or more, or a bad `Content-Length`).
A parser that has completed a request starts a fresh one on the next call.
Bodies are read according to `Content-Length`; chunked bodies are not decoded.

## Building responses

```python
from reactorweb.http_message import HttpResponse, HttpStatusCode, content_type

body = b"<h1>hello</h1>"
response = HttpResponse()
response.set_version("HTTP/1.1")
response.set_status(HttpStatusCode.OK)
response.add_header("Content-Type", content_type("index.html"))
response.add_header("Content-Length", str(len(body)))
response.set_body(body)
wire = response.encode()
chunks = response.encode_chunks()   # the same bytes as a list, for gathered writes
```

The setters raise `ValueError` for an unsupported version, method or status
code, or for an empty header name or value.

## Channels and polling

A `Channel` holds a descriptor's interest set and callbacks; an `Epoller`
tracks channels and reports which are ready. Both talk to a loop object that
you supply, which needs `assert_in_loop_thread()`, `update_channel(channel)`
and `remove_channel(channel)`:

```python
import os
from reactorweb.channel import Channel
from reactorweb.epoller import Epoller

class Loop:
    def __init__(self):
        self.poller = Epoller(self)
    def assert_in_loop_thread(self):
        pass
    def update_channel(self, channel):
        self.poller.update_channel(channel)
    def remove_channel(self, channel):
        self.poller.remove_channel(channel)

loop = Loop()
r, w = os.pipe()
channel = Channel(loop, r)
channel.read_callback = lambda when: print("readable at", when, os.read(r, 100))
channel.enable_reading()
os.write(w, b"ping")
now, active = loop.poller.poll(1000)
for ch in active:
    ch.handle_events(now)
channel.disable_all()
channel.remove()
loop.poller.close()
```

## Logging

```python
from reactorweb import logger

logger.set_log_level(logger.LogLevel.DEBUG)
logger.info("server starting")
```

Records go to stdout unless `logger.set_output(func)` routes them elsewhere;
`func` receives each record as bytes. `logger.fatal()` and
`logger.sysfatal()` write the record, flush, and raise `FatalLogError`.

To write records to rolling files in the background, pass an `AsyncLogger`'s
`append` method to `logger.set_output`. Used as a context manager, the
logger starts on entry and stops on exit after writing what is queued:

```python
from reactorweb import logger
from reactorweb.async_logger import AsyncLogger

with AsyncLogger("server", "./log", roll_size=500_000_000) as file_logger:
    logger.set_output(file_logger.append)
    logger.info("written to ./log/server.<date>-<time>.<pid>.log")
    logger.set_output(None)
```

## Configuration

`parse_args(argv)` turns command-line options into a `Config`: `-i/--ip`,
`-p/--port`, `-j/--thread`, `-r/--path`, `-t/--timeout`, `-c/--maxconn`,
`-L/--log`, `-f/--logfname`, `-R/--logdir`, `-l/--loglevel`,
`-s/--logrollsize` and `-u/--logflush`. The root path is resolved to an
existing absolute path; bad options or a missing path raise `ConfigError`.
`-h/--help` prints `help_text()` and exits. `Config.summary()` lists the
settings.

## What the package does not do

There is no event loop class, no listening socket that accepts connections,
and no loop-per-thread pool; `Channel` and `Epoller` must be driven by a loop
you write. Nothing serves HTTP on its own, and the package installs no
command: `parse_args` produces a `Config`, but nothing here starts a server
from it.

## Running the tests

Install the `test` extra, then run `pytest` from the project directory.