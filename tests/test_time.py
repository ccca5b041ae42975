import pytest

from substudy.errors import MalformedTimestamp
from substudy.util.time import ZERO, Time


def test_parse_basic_timestamps() -> None:
    assert Time.parse("00:00:01,000") == Time(1000)
    assert Time.parse("01:02:03,456") == Time(3_723_456)
    assert Time.parse(" 00:00:00,007 ") == Time(7)


def test_parse_accepts_any_number_of_hour_digits() -> None:
    assert Time.parse("0:00:01,500") == Time(1500)
    assert Time.parse("123:00:00,000") == Time(123 * 3_600_000)


@pytest.mark.parametrize(
    "text",
    ["00:60:00,000", "00:00:60,000", "00:00:01.000", "00:00:01,00", "abc", "", "-1:00:00,000"],
)
def test_parse_rejects_malformed_timestamps(text) -> None:
    with pytest.raises(MalformedTimestamp):
        Time.parse(text)


def test_malformed_timestamp_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        Time.parse("12:34")


def test_format_is_inverse_of_parse() -> None:
    for ms in (0, 1, 999, 59_999, 3_599_999, 3_600_000, 100 * 3_600_000 + 1):
        t = Time(ms)
        assert Time.parse(t.format()) == t
    assert Time(3_723_456).format() == "01:02:03,456"
    assert str(Time(5)) == "00:00:00,005"


def test_subtraction_saturates_at_zero() -> None:
    assert Time(500) - Time(1000) == ZERO
    assert Time(1500) - Time(1000) == Time(500)
    assert Time(3).saturating_sub(Time(4)) == ZERO


def test_addition_and_ordering() -> None:
    assert Time(250) + Time(750) == Time(1000)
    assert sorted([Time(3), Time(1), Time(2)]) == [Time(1), Time(2), Time(3)]
    assert Time(1) < Time(2) <= Time(2)


def test_negative_and_non_integer_times_are_rejected() -> None:
    with pytest.raises(ValueError):
        Time(-1)
    with pytest.raises(TypeError):
        Time(1.5)
    with pytest.raises(TypeError):
        Time(True)


def test_from_seconds_rounds_to_milliseconds() -> None:
    assert Time.from_seconds(2.5) == Time(2500)
    assert Time.from_seconds(0.0004) == ZERO
    assert Time.from_seconds(-0.2) == ZERO
    assert Time(1500).seconds == 1.5
