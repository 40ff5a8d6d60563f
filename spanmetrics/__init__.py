"""In-process instrumentation: counters, distributions, function stats, trace headers and environment stats."""

__version__ = "0.1.0"

__all__ = [
    "callers",
    "counter",
    "dist",
    "environment",
    "error_names",
    "funcset",
    "funcstats",
    "httptrace",
]