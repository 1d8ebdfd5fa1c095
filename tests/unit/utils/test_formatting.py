"""Unit tests for formatting helpers."""

import pytest
from filekeep.utils.formatting import format_size


class TestFormatSize:
    """Tests for format_size."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 B"),
            (512, "512 B"),
            (1023, "1023 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (5 * 1024**2, "5.0 MB"),
            (3 * 1024**4, "3.0 TB"),
            (2048 * 1024**4, "2048.0 TB"),
        ],
    )
    def test_units(self, size: int, expected: str) -> None:
        """Sizes are scaled to the largest unit below 1024."""
        assert format_size(size) == expected
