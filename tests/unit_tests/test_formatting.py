import pytest

from drive_api.utils.formatting import format_bytes


@pytest.mark.parametrize(
    "num_bytes,expected",
    [
        (0, "0 Bytes"),
        (1, "1 Bytes"),
        (1023, "1023 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1024 * 1024, "1 MB"),
        (int(2.25 * 1024 ** 3), "2.25 GB"),
        (5 * 1024 ** 4, "5 TB"),
        (2048 * 1024 ** 4, "2048 TB"),
    ],
)
def test_format_bytes(num_bytes, expected):
    assert format_bytes(num_bytes) == expected


def test_format_bytes_rounds_to_requested_decimals():
    assert format_bytes(1234567, decimals=1) == "1.2 MB"
    assert format_bytes(1234567, decimals=0) == "1 MB"
