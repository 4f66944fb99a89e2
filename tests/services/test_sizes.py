from decimal import Decimal

import pytest

from pt_adapters.errors import InvalidSizeError, InvalidUnitError
from pt_adapters.services.sizes import (
    BINARY_UNITS,
    parse_size,
    parse_size_text,
    split_size_text,
    to_binary_unit,
)

LADDER = list(BINARY_UNITS)


def test_parse_size_one_and_a_half_gib():
    assert parse_size("1.5", "GiB") == 1610612736


@pytest.mark.parametrize("value", ["1", "1.5", "0.001", "768.25", "3.14159"])
@pytest.mark.parametrize("step", range(1, len(LADDER)))
def test_parse_size_is_consistent_across_the_ladder(value, step):
    larger, smaller = LADDER[step], LADDER[step - 1]
    scaled = str(Decimal(value) * 1024)
    assert parse_size(value, larger) == parse_size(scaled, smaller)


def test_parse_size_rounds_to_nearest_byte():
    assert parse_size("0.4", "B") == 0
    assert parse_size("0.5", "B") == 1
    assert parse_size("1.0005", "KiB") == 1025


def test_parse_size_rejects_decimal_looking_units():
    with pytest.raises(InvalidUnitError) as excinfo:
        parse_size("1", "GB")
    assert excinfo.value.unit == "GB"


def test_parse_size_rejects_malformed_numbers():
    with pytest.raises(InvalidSizeError):
        parse_size("1,5", "GiB")
    with pytest.raises(InvalidSizeError):
        parse_size("-1", "GiB")


@pytest.mark.parametrize(
    "unit, expected",
    [("KB", "KiB"), ("mb", "MiB"), ("GiB", "GiB"), ("T", "TiB"), ("B", "B")],
)
def test_to_binary_unit(unit, expected):
    assert to_binary_unit(unit) == expected


def test_split_size_text_handles_separators_and_nbsp():
    assert split_size_text("1,024.50\xa0MB") == ("1024.50", "MiB")
    assert split_size_text("8.5 GB") == ("8.5", "GiB")
    assert split_size_text("512B") == ("512", "B")


def test_parse_size_text_treats_display_units_as_binary():
    assert parse_size_text("1.5 TB") == parse_size("1.5", "TiB")
    assert parse_size_text("700.5 MB") == 734527488


def test_split_size_text_without_unit_fails():
    with pytest.raises(InvalidSizeError):
        split_size_text("unknown")
