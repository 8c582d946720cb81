# flexlog

Building blocks for a logging library, with no dependencies beyond the
standard library.

## Modules

- `flexlog.result` – `Result`, `Error`, `ResultError`, `ok()` and `err()`.
  A `Result` holds either a value or an error and offers `map`, `and_then`,
  `or_else`, `map_error`, `inspect`, `match`, `value_or`, `unwrap`, `expect`,
  `transpose` and `flatten`. Accessing the side a result does not hold raises
  `ResultError`. `err()` records the caller's file and line in the `Error`.
- `flexlog.atomic_string` – `AtomicString`, a thread-safe string truncated to
  127 characters.
- `flexlog.string_storage` – `StringStorage`, which holds text and reports
  whether it fits a 64-byte inline capacity.
- `flexlog.hazard_pointer` – `HazardPointerDomain` and `HazardPointer`:
  retired objects are handed to their deleter only once no thread protects them.
- `flexlog.rcu_list` – `RCUList` and `ReadHandle`: a copy-on-write list whose
  readers keep a stable snapshot while writers publish new ones.
- `flexlog.message_pool` – `Level`, `MessageState`, `SourceLocation`, `Message`
  and `MessagePool`, which recycles messages (a per-thread cache first, then
  shared chunks that grow by a factor of two; `try_shrink` drops unused ones).
- `flexlog.message_queue` – `MessageQueue`, a bounded ring buffer whose capacity
  is rounded up to a power of two.
- `flexlog.thread_pool` – `LoggerThreadPool`: worker threads with priority
  queues that call `message.logger.process_message(message)` for each queued
  active message. It supports `flush`, `shutdown`, `resize` and use as a
  context manager.
- `flexlog.pattern_formatter` – `PatternFormatter` with the tokens
  `{timestamp}`, `{level}`, `{name}`, `{message}`, `{source}`, `{function}`,
  `{line}` and `{custom:NAME}` (registered with `register_custom_formatter`),
  plus `DefaultFormatter`, `SimpleFormatter` and `DetailedFormatter`.
- `flexlog.structured` – `CommonFormatterOptions` (chainable `set_*`/`add_*`
  methods) and the abstract `BaseStructuredFormatter`.
- `flexlog.cloudwatch` – `CloudWatchOptions` and `CloudWatchFormatter`, which
  renders a message as a JSON object with log group, stream, host, level,
  logger, location, tags, structured data and user fields.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

```python
from flexlog.result import ok, err

r = ok(21).map(lambda v: v * 2)
assert r.unwrap() == 42

failed = err(404, "not found")
assert failed.value_or(0) == 0
print(failed.error().formatted_message())
```

```python
from flexlog.message_pool import MessagePool, Level
from flexlog.pattern_formatter import PatternFormatter
from flexlog.cloudwatch import CloudWatchFormatter, CloudWatchOptions

pool = MessagePool()
msg = pool.acquire()
msg.name = "app"
msg.level = Level.INFO
msg.message = "started"

print(PatternFormatter("[{level}] {name}: {message}").format(msg))  # [INFO] app: started

options = CloudWatchOptions().set_log_group("my-service")
print(CloudWatchFormatter(options).format_message(msg))

pool.release(msg)
```

## What this package does not do

There is no ready-made logger, log manager or output sink (console, file,
network): `LoggerThreadPool` only calls `process_message` on whatever object a
message's `logger` attribute holds. Of the structured formats, only the
CloudWatch-style JSON output is provided; there is no plain JSON, GELF,
Elasticsearch, Logstash, OpenTelemetry, Splunk or XML formatter, and no
command-line tool.