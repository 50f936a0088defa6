# trantor

Building blocks for event-driven programs. The package has no third-party
dependencies.

## Modules

### `trantor.date`

`Date` is an immutable, ordered time point that counts microseconds since
1970-01-01 00:00:00 UTC (`micro_seconds_since_epoch`).

- `Date.now()` / `Date.date()` give the current time.
  `Date.from_components(year, month, day, hour, minute, second, micro_second)`
  builds a date from local-time calendar fields.
- `after(seconds)`, `round_second()` and `round_day()` (local midnight) return
  new dates. `seconds_since_epoch()`, `is_same_second(other)` and
  `tm_struct()` (UTC `time.struct_time`) inspect one.
- `to_formatted_string(show_microseconds)` gives `YYYYMMDD HH:MM:SS[.UUUUUU]`
  in UTC, and `to_formatted_string_local` does the same in local time.
  `to_custom_formatted_string(fmt, show_microseconds=False)` and
  `to_custom_formatted_string_local` take a `strftime` pattern.
- `to_db_string_local()` gives `YYYY-MM-DD` when the time is local midnight,
  `YYYY-MM-DD HH:MM:SS` when there are no microseconds, and otherwise
  `YYYY-MM-DD HH:MM:SS.UUUUUU`. `to_db_string()` gives the same in UTC.
- `Date.from_db_string_local(text)` and `Date.from_db_string(text)` parse
  those forms back. They raise `ValueError` on a malformed string.
- `Date.timezone_offset()` is the number of seconds local time is ahead of
  UTC.

```python
from trantor.date import Date

d = Date.from_db_string_local("2018-01-01 10:10:25.102414")
print(d.to_db_string_local())              # 2018-01-01 10:10:25.102414
print(d.round_day().to_db_string_local())  # 2018-01-01
print(d.to_custom_formatted_string_local("%Y/%m/%d", True))
# 2018/01/01.102414
```

### `trantor.async_file_logger`

`AsyncFileLogger(file_size_limit=20 MiB, max_files=0, switch_on_limit_only=False)`
collects output in memory and writes it from a background thread.

- `set_file_name(base_name, ext_name=".log", path="./")` chooses where the
  logger writes. The extension gains a leading dot if it lacks one, and the
  path gains a trailing `/`. The directory must already exist.
- `start_logging()` starts the writer thread. `output(msg)` takes `bytes` or
  `str`. Messages larger than 4 MiB are dropped. When more than 25 buffers are
  waiting, messages are dropped, and a line `N log information is lost` is
  written in their place. `flush()` hands the current buffer to the writer,
  which otherwise picks it up about once a second.
- Writing always goes to `<path><base><ext>`. When the file grows past
  `file_size_limit`, it is renamed to `<base>.yymmdd-hhmmss.NNNNNN<ext>` and a
  new file is opened. When `max_files` is positive, only that many renamed
  files are kept, and the oldest are removed.
- `close()` (or leaving a `with` block) stops the thread and writes what is
  pending. It then renames the current file as well, unless
  `switch_on_limit_only` is true.

`LoggerFile` is the single-file writer used underneath. Its methods are
`open`, `write_log`, `flush`, `length`, `switch_log` and `close`.

```python
from trantor.async_file_logger import AsyncFileLogger

with AsyncFileLogger(file_size_limit=1024 * 1024, max_files=5,
                     switch_on_limit_only=True) as logger:
    logger.set_file_name("app", ".log", "./logs/")
    logger.start_logging()
    logger.output(b"service started\n")
```

### `trantor.concurrent_task_queue`

`ConcurrentTaskQueue(thread_num, name)` runs callables on `thread_num` worker
threads, named `name0`, `name1` and so on. A `thread_num` that is not
positive raises `ValueError`.

- `run_task_in_queue(task)` queues a task.
- `task_count()` reports how many tasks are still waiting, and `name()` gives
  the queue's name.
- Exceptions raised by tasks are logged and do not stop the worker.
- `stop()` (or leaving a `with` block) stops the workers. Tasks no worker has
  taken yet are dropped, so wait for the work you need before stopping.

```python
import threading
from trantor.concurrent_task_queue import ConcurrentTaskQueue

done = threading.Event()
with ConcurrentTaskQueue(4, "worker") as queue:
    queue.run_task_in_queue(done.set)
    done.wait()
```

### `trantor.timer` and `trantor.timer_queue`

`Timer(callback, when, interval=0.0)` is due at `when`, a value of
`time.monotonic()`. A positive `interval`, in seconds, makes it repeat. It
exposes `when`, `is_repeat`, `id` and `interval`, and has `run()` and
`restart(now)`. Ids are unique and start at 1.

`TimerQueue` holds timers in order of due time:

- `add_timer(callback, when, interval=0.0)` returns the timer's id.
- `invalidate_timer(timer_id)` cancels a timer.
- `get_timeout()` gives the milliseconds until the earliest timer is due. It
  is at least 1, or 10000 when the queue is empty.
- `process_timers()` runs every timer that is due and reschedules the
  repeating ones.

```python
import time
from trantor.timer_queue import TimerQueue

timers = TimerQueue()
timers.add_timer(lambda: print("tick"), time.monotonic() + 0.05, 0.05)
for _ in range(3):
    time.sleep(timers.get_timeout() / 1000)
    timers.process_timers()
```

### `trantor.poll_poller` and `trantor.epoll_poller`

`PollableChannel(fd)` holds a file descriptor together with two sets of
events: `events`, the ones of interest, and `revents`, the ones that fired.
It provides `enable_reading`, `enable_writing`, `disable_reading`,
`disable_writing`, `disable_all`, `is_reading`, `is_writing` and
`is_none_event`.

Two pollers are available:

- `PollPoller` uses `select.poll` and logs a warning once when it is first
  created.
- `EpollPoller` uses `select.epoll`, so it needs Linux. It raises `OSError`
  where epoll is missing. It also has `close()` and works as a context
  manager.

Both pollers offer the same three calls:

- `update_channel(channel)` registers a channel or applies changed interests.
- `remove_channel(channel)` forgets a channel. Clear its events and update it
  first.
- `poll(timeout_ms)` returns the channels that became active. A negative
  timeout waits forever.

Misuse, such as a negative fd, registering the same fd twice, or removing a
channel that is still interested in events, raises `ValueError`.

```python
import os
from trantor.poll_poller import PollableChannel, PollPoller

r, w = os.pipe()
poller = PollPoller()
channel = PollableChannel(r)
channel.enable_reading()
poller.update_channel(channel)
os.write(w, b"x")
print([c.fd for c in poller.poll(100)] == [r])  # True
```

## What the package does not do

These are standalone pieces, not a networking framework:

- There is no event loop that drives the pollers and timers together.
- There are no TCP servers, clients or connections.
- There is no TLS and no name resolution.
- There is no command-line program.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install ".[test]"
```

## Running the tests

```
pytest
```