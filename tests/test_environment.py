import os

import pytest

from spanmetrics import environment
from spanmetrics.dist import SeriesKey
from spanmetrics.environment import (
    ProcSelfStat,
    ProcSelfStatm,
    fd_count,
    open_proc,
    os_stats,
    proc_stats,
    process_crc,
    process_stats,
    read_proc_self_stat,
    read_proc_self_statm,
    rusage_stats,
)

SAMPLE_STAT = (
    "1234 (my prog) S 1 1234 1234 0 -1 4194560 500 0 2 0 10 5 0 0 20 0 3 0 "
    "987 12345678 256 18446744073709551615 1 2 3 0 0 0 0 0 0 0 0 0 17 2 0 0 "
    "7 0 0 0 0 0 0 0 0 0\n"
)


def _collect(source):
    out = {}

    def cb(key, field, value):
        out[(key, field)] = value

    source(cb)
    return out


def test_fd_count_is_not_zero():
    assert fd_count() > 0


def test_open_proc_reads_bytes():
    with open_proc() as fh:
        data = fh.read()
    assert len(data) > 0


def test_parse_stat_sample():
    stat = environment._parse_stat(SAMPLE_STAT)
    assert isinstance(stat, ProcSelfStat)
    assert stat.pid == 1234
    assert stat.comm == "(my prog)"
    assert stat.state == "S"
    assert stat.ppid == 1
    assert stat.tpgid == -1
    assert stat.minflt == 500
    assert stat.num_threads == 3
    assert stat.rsslim == 18446744073709551615
    assert stat.exit_signal == 17
    assert stat.processor == 2
    assert stat.delayacct_blkio_ticks == 7
    assert stat.cguest_time == 0


def test_parse_stat_too_short():
    with pytest.raises(ValueError):
        environment._parse_stat("1 (x) S 1 2 3")


def test_parse_statm_sample():
    statm = environment._parse_statm("100 50 20 10 0 30 0\n")
    assert statm == ProcSelfStatm(100, 50, 20, 10, 0, 30, 0)


def test_parse_statm_too_short():
    with pytest.raises(ValueError):
        environment._parse_statm("1 2 3")


def test_read_proc_self_stat_matches_pid():
    stat = read_proc_self_stat()
    assert stat.pid == os.getpid()
    assert stat.num_threads >= 1


def test_read_proc_self_statm_resident_within_size():
    statm = read_proc_self_statm()
    assert 0 < statm.resident <= statm.size


def test_os_stats_reports_fd_count():
    out = _collect(os_stats)
    assert out[(SeriesKey("fds"), "count")] > 0


def test_process_crc_is_stable_and_32_bit():
    first = process_crc()
    assert first == process_crc()
    assert 0 <= first < 2**32


def test_process_stats_fields():
    out = _collect(process_stats)
    key = SeriesKey("process")
    assert out[(key, "control")] == 1.0
    assert out[(key, "crc")] == float(process_crc())
    assert out[(key, "uptime")] >= 0.0


def test_proc_stats_reports_pid_and_skips_strings():
    out = _collect(proc_stats)
    assert out[(SeriesKey("proc_stat"), "pid")] == float(os.getpid())
    assert (SeriesKey("proc_stat"), "comm") not in out
    assert (SeriesKey("proc_stat"), "state") not in out
    assert out[(SeriesKey("proc_statm"), "size")] > 0


def test_rusage_stats_reports_maxrss():
    out = _collect(rusage_stats)
    assert out[(SeriesKey("rusage"), "ru_maxrss")] > 0
    assert out[(SeriesKey("rusage"), "ru_utime")] >= 0.0