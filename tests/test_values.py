import math

import pytest

from memcache_exporter.values import (
    KeyNotFound,
    ValueParseError,
    parse,
    parse_bool,
    parse_timeval,
    sum_values,
)


def test_parse_timeval_success():
    value = parse_timeval({"rusage_system": "3.5"}, "rusage_system")
    assert value == pytest.approx(3.000005)


def test_parse_timeval_failure_without_dot():
    with pytest.raises(ValueParseError):
        parse_timeval({"rusage_system": "35"}, "rusage_system")


def test_parse_timeval_full_microseconds():
    assert parse_timeval({"rusage_user": "1.250000"}, "rusage_user") == pytest.approx(1.25)


def test_parse_timeval_bad_part():
    with pytest.raises(ValueParseError, match="timeval"):
        parse_timeval({"rusage_user": "1.x"}, "rusage_user")


def test_parse_timeval_too_many_parts():
    with pytest.raises(ValueParseError):
        parse_timeval({"rusage_user": "1.2.3"}, "rusage_user")


def test_parse_timeval_missing_key():
    with pytest.raises(KeyNotFound):
        parse_timeval({}, "rusage_user")


@pytest.mark.parametrize(
    "text, expected",
    [("10", 10.0), ("0.20", 0.2), ("2.00", 2.0), ("-3", -3.0), ("1e3", 1000.0), ("0x10", 16.0)],
)
def test_parse_numbers(text, expected):
    assert parse({"k": text}, "k") == expected


def test_parse_infinity_literal():
    assert parse({"k": "+Inf"}, "k") == math.inf


@pytest.mark.parametrize("text", ["fail", "", " 1", "1_000", "1e400", "yes"])
def test_parse_rejects_invalid(text):
    with pytest.raises(ValueParseError):
        parse({"k": text}, "k")


def test_parse_missing_key():
    with pytest.raises(KeyNotFound) as info:
        parse({"other": "1"}, "maxconns")
    assert str(info.value) == "key not found"
    assert info.value.key == "maxconns"


def test_parse_bool_values():
    stats = {"on": "yes", "off": "no"}
    assert parse_bool(stats, "on") == 1.0
    assert parse_bool(stats, "off") == 0.0


def test_parse_bool_failure():
    with pytest.raises(ValueParseError, match="bool"):
        parse_bool({"lru_maintainer_thread": "fail"}, "lru_maintainer_thread")


def test_parse_bool_missing_key():
    with pytest.raises(KeyNotFound):
        parse_bool({}, "lru_crawler")


def test_sum_values():
    stats = {"cas_misses": "1", "cas_hits": "2", "cas_badval": "3"}
    assert sum_values(stats, "cas_misses", "cas_hits", "cas_badval") == 6.0


def test_sum_values_no_keys_is_zero():
    assert sum_values({"a": "5"}) == 0.0


def test_sum_values_missing_key():
    with pytest.raises(KeyNotFound):
        sum_values({"cas_hits": "2"}, "cas_hits", "cas_badval")


def test_sum_values_invalid_value():
    with pytest.raises(ValueParseError):
        sum_values({"cas_hits": "2", "cas_badval": "x"}, "cas_hits", "cas_badval")