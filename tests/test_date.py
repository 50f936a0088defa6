import time

import pytest

from trantor.date import Date


def test_default_is_epoch():
    assert Date().micro_seconds_since_epoch == 0
    assert Date() == Date(0)


def test_ordering():
    assert Date(1) < Date(2)
    assert Date(2) > Date(1)
    assert Date(3) >= Date(3)
    assert Date(3) <= Date(4)
    assert Date(5) != Date(6)


def test_after_whole_seconds():
    assert Date(0).after(2).seconds_since_epoch() == 2
    assert Date(0).after(2).after(-2) == Date(0)


def test_round_second_invariants():
    d = Date(1_234_567)
    r = d.round_second()
    assert r.micro_seconds_since_epoch % Date.MICRO_SECONDS_PER_SEC == 0
    assert r.is_same_second(d)
    assert r <= d
    assert r.round_second() == r


def test_is_same_second():
    assert Date(0).is_same_second(Date(999_999))
    assert not Date(0).is_same_second(Date(1_000_000))


def test_now_is_current():
    before = time.time()
    now = Date.now()
    after = time.time()
    assert int(before) - 1 <= now.seconds_since_epoch() <= int(after) + 1
    assert Date.date() >= now


def test_custom_format_utc_epoch():
    assert Date(0).to_custom_formatted_string("%Y-%m-%d %H:%M:%S") == \
        "1970-01-01 00:00:00"


def test_formatted_string_matches_custom_pattern():
    d = Date(1_514_801_425_102_414)
    assert d.to_formatted_string(False) == \
        d.to_custom_formatted_string("%Y%m%d %H:%M:%S")
    assert d.to_formatted_string(True) == \
        d.to_custom_formatted_string("%Y%m%d %H:%M:%S", True)


def test_show_microseconds_suffix():
    d = Date(1_000_123)
    assert d.to_custom_formatted_string("%S", True).endswith(".000123")
    assert d.to_formatted_string(True).endswith(".000123")
    assert not d.to_formatted_string(False).endswith(".000123")


def test_local_formatted_string_matches_custom_pattern():
    d = Date.from_components(2018, 1, 1, 10, 10, 25, 102414)
    assert d.to_formatted_string_local(True) == \
        d.to_custom_formatted_string_local("%Y%m%d %H:%M:%S", True)
    assert d.to_custom_formatted_string_local("%Y-%m-%d %H:%M:%S") == \
        "2018-01-01 10:10:25"


def test_tm_struct_matches_format():
    d = Date(1_514_801_425_000_000)
    tm = d.tm_struct()
    assert tm.tm_year == int(d.to_custom_formatted_string("%Y"))
    assert tm.tm_mon == int(d.to_custom_formatted_string("%m"))
    assert tm.tm_hour == int(d.to_custom_formatted_string("%H"))


def test_db_string_local_with_microseconds():
    d = Date.from_components(2018, 1, 1, 10, 10, 25, 102414)
    assert d.to_db_string_local() == "2018-01-01 10:10:25.102414"


def test_db_string_local_without_microseconds():
    d = Date.from_components(2018, 1, 1, 10, 10, 25)
    assert d.to_db_string_local() == "2018-01-01 10:10:25"


def test_db_string_local_date_only():
    assert Date.from_components(2018, 1, 1).to_db_string_local() == \
        "2018-01-01"


def test_round_day():
    d = Date.from_components(2018, 1, 1, 10, 10, 25, 102414)
    r = d.round_day()
    assert r == Date.from_components(2018, 1, 1)
    assert r <= d
    assert r.round_day() == r


@pytest.mark.parametrize("text", [
    "2018-01-01",
    "2018-01-01 10:10:25",
    "2018-01-01 10:10:25.102414",
])
def test_db_string_local_round_trip(text):
    assert Date.from_db_string_local(text).to_db_string_local() == text


def test_parse_pads_short_fraction():
    d = Date.from_db_string_local("2018-01-01 10:10:25.5")
    assert d.to_db_string_local().endswith(".500000")


def test_parse_truncates_long_fraction():
    d = Date.from_db_string_local("2018-01-01 10:10:25.1234567")
    assert d == Date.from_components(2018, 1, 1, 10, 10, 25, 123456)


def test_parse_ignores_incomplete_time():
    d = Date.from_db_string_local("2018-01-01 10:10")
    assert d == Date.from_components(2018, 1, 1)


@pytest.mark.parametrize("text", [
    "",
    "   ",
    "2018-01",
    "a-b-c",
    "2018-01-01 10:10:25 extra",
    "2018-01-01 aa:bb:cc",
])
def test_parse_errors(text):
    with pytest.raises(ValueError, match="Invalid date string"):
        Date.from_db_string_local(text)


def test_timezone_offset_consistency():
    d = Date.from_db_string("1970-01-03 00:00:00")
    assert d.seconds_since_epoch() == 2 * 3600 * 24
    local = Date.from_db_string_local("1970-01-03 00:00:00")
    assert d == local.after(Date.timezone_offset())


def test_db_string_utc_epoch():
    assert Date(0).to_db_string() == "1970-01-01"


def test_db_string_utc_round_trip():
    d = Date.from_components(2018, 1, 1, 10, 10, 25, 102414)
    assert Date.from_db_string(d.to_db_string()) == d
    text = "2018-06-15 12:30:45.250000"
    assert Date.from_db_string(text).to_db_string() == text


def test_db_string_utc_matches_utc_format():
    d = Date(1_514_801_425_000_000)
    assert d.to_db_string() == d.to_custom_formatted_string("%Y-%m-%d %H:%M:%S")