# spanmetrics

A small library for instrumenting your own code from the inside: running
counters, value distributions with approximate quantiles, per-function
success, error and panic statistics, W3C-style trace header handling, and
process environment statistics.

The package has no dependencies beyond the standard library.

## Reporting values

Every metric source reports through a callback. `stats(cb)` methods, and the
`*_stats(cb)` functions in `spanmetrics.environment`, call
`cb(key, field, value)` once for each value, where `key` is a
`spanmetrics.dist.SeriesKey` (a measurement name plus sorted tags) and
`value` is a float.

```python
from spanmetrics.dist import SeriesKey

key = SeriesKey("function").with_tag("name", "work")
```

## Counters

`spanmetrics.counter.Counter` is a thread-safe running total that remembers
the highest and lowest values seen.

```python
from spanmetrics.counter import Counter
from spanmetrics.dist import SeriesKey

calls = Counter(SeriesKey("calls"))
calls.inc(1)
calls.dec(3)
print(calls.current(), calls.low(), calls.high())   # -2 -2 1
former = calls.set(10)                               # returns -2
value, low, high = calls.reset()
```

Before any value is recorded, `stats` reports `high` and `low` as NaN.

## Distributions

`IntDist`, `FloatDist` and `DurationDist` (in `spanmetrics.dist`) keep the
count, sum, low, high and most recent value, together with a 64-entry
reservoir sample used for approximate quantiles. They are not thread-safe.

```python
from spanmetrics.dist import FloatDist, SeriesKey

latency = FloatDist(SeriesKey("latency"))
for value in (0.2, 0.4, 0.9):
    latency.insert(value)
print(latency.full_average(), latency.query(0.5), latency.reservoir_average())
```

`DurationDist` takes `datetime.timedelta` values and reports them in seconds.
`copy()` gives an independent copy and `reset()` forgets everything.
`stats` reports `count`, and when there are values also `sum`, `min`,
`avg`, `max`, `rmin`, `ravg`, `r10`, `r50`, `r90`, `rmax` and `recent`.

## Function statistics

`spanmetrics.funcstats.FuncStats` counts how many calls are running, the most
that ran at once, successes, errors by name and panics, and keeps duration
distributions for successes and failures.

```python
from spanmetrics.dist import SeriesKey
from spanmetrics.funcstats import FuncStats

stats = FuncStats(SeriesKey("function").with_tag("name", "work"))
with stats.observe():
    ...
print(stats.success(), stats.errors(), stats.panics(), stats.highwater())
```

`observe()` re-raises whatever the block raises. An `Exception` subclass
counts as an error; any other `BaseException` (such as `KeyboardInterrupt`)
counts as a panic. `start(parent)` and `end(err, panicked, duration)` can be
called directly instead; callers passed to `start` are kept in a
`spanmetrics.funcset.FuncSet` and returned by `parents()`.

## Error names

`spanmetrics.error_names.get_error_name(err)` gives a label for an error:
handlers registered with `add_error_name_handler` come first (most recent
first; a handler returns a name or None), then the error's own `name()`
method, then built-in names such as `"EOF"`, `"Timeout"`, `"Canceled"`,
`"DNS Error"` and `"Errno"`, falling back to `"System Error"`.

## Caller names

`spanmetrics.callers` has `caller_package(frames)` and `caller_func(frames)`,
which name the module or function further up the call stack, and
`extract_func_name(name)`, which strips the package path from a qualified
name (`"main.DoThings.func1"` gives `"DoThings.func1"`, a malformed name
gives None).

## Trace headers

`spanmetrics.httptrace` reads and writes the `traceparent` and `tracestate`
headers.

```python
from spanmetrics.httptrace import TraceInfo, trace_info_from_header

headers = {}
TraceInfo(trace_id=1, parent_id=16, sampled=True).set_header(headers)
# headers == {"traceparent": "00-0000000000000001-00000010-1"}
info = trace_info_from_header(headers)
```

Without both ids, a sampled `TraceInfo` writes `tracestate: sampled=true`
instead. A malformed `traceparent` reads back as an empty `TraceInfo`.
`ResponseObserver` wraps a response writer and remembers the status code it
sent (200 when none was set).

## Environment

`spanmetrics.environment` reports:

- `os_stats`: open file descriptors (`fd_count()`);
- `process_stats`: a constant `control` value, the CRC-32 of the running
  executable (`process_crc()`, cached) and uptime in seconds;
- `proc_stats`: numeric fields of `/proc/self/stat` and `/proc/self/statm`
  (`read_proc_self_stat()`, `read_proc_self_statm()`);
- `rusage_stats`: resource usage from the `resource` module.

`STAT_SOURCES` lists all four. Values that cannot be read on the current
platform are left out rather than raising.

## What this package does not do

It does not create spans or traces, generate trace ids, keep a registry of
scopes or functions, or serve statistics over HTTP. `TraceInfo` only converts
between trace details and headers; wiring sources together and exporting
their values is left to the caller.