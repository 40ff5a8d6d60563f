import pytest

from spanmetrics.callers import caller_func, caller_package, extract_func_name


@pytest.mark.parametrize(
    "name, expected",
    [
        ("", None),
        ("a/", None),
        ("a/v.", None),
        ("a/v.x", "x"),
        ("github.com/spacemonkeygo/monkit/v3.BenchmarkTask.func1", "BenchmarkTask.func1"),
        ("main.DoThings.func1", "DoThings.func1"),
        ("main.DoThings", "DoThings"),
    ],
)
def test_extract_func_name(name, expected):
    assert extract_func_name(name) == expected


def _named_by_wrapper():
    return caller_func(0)


def outer_function():
    return _named_by_wrapper()


def _two_levels():
    return caller_func(1)


def _middle():
    return _two_levels()


def topmost_function():
    return _middle()


def test_caller_func_names_the_callers_caller():
    assert outer_function() == "outer_function"


def test_caller_func_walks_further_up():
    assert topmost_function() == "topmost_function"


def test_caller_package_is_this_module():
    assert caller_package(0) == __name__


def test_caller_package_too_deep_is_unknown():
    assert caller_package(100_000) == "unknown"


def test_caller_func_too_deep_is_unknown():
    assert caller_func(100_000) == "unknown"