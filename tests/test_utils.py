import pytest

from pt_adapters.utils import encode_uri_component, format_bytes, parse_count


# Use pytest's "parametrize" to test many cases with one function
@pytest.mark.parametrize(
    "size_bytes, expected_str",
    [
        (0, "0B"),
        (1023, "1023.0 B"),
        (1024, "1.0 KiB"),
        (1536, "1.5 KiB"),
        (1048576, "1.0 MiB"),
        (1610612736, "1.5 GiB"),
        (1024**6, "1024.0 PiB"),
    ],
)
def test_format_bytes(size_bytes, expected_str):
    """Verify that format_bytes converts byte sizes to human-readable strings."""
    assert format_bytes(size_bytes) == expected_str


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1,927", 1927),
        (" 42 ", 42),
        ("0", 0),
        ("n/a", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_count(text, expected):
    assert parse_count(text) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("foo bar", "foo%20bar"),
        ("tt1234567", "tt1234567"),
        ("a&b=c/d", "a%26b%3Dc%2Fd"),
        ("it's (good)!*~", "it's%20(good)!*~"),
        ("沙丘", "%E6%B2%99%E4%B8%98"),
    ],
)
def test_encode_uri_component(value, expected):
    assert encode_uri_component(value) == expected
