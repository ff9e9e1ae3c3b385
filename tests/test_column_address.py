import pytest
from openpyxl.utils import get_column_letter

from dosage.scripts.column_address import column_index
from dosage.scripts.errors import ConfigError


@pytest.mark.parametrize("letters,expected", [
    ("A", 1), ("Z", 26), ("AA", 27), ("AZ", 52), ("BA", 53), ("W", 23), ("BS", 71), ("DP", 120),
])
def test_known_columns(letters, expected):
    assert column_index(letters) == expected


def test_strictly_increasing_up_to_three_letters():
    previous = 0
    for i in range(1, 26 + 26 ** 2 + 26 ** 3 + 1):
        idx = column_index(get_column_letter(i))
        assert idx == previous + 1
        previous = idx


def test_case_and_whitespace_are_ignored():
    assert column_index("  ab ") == 28


@pytest.mark.parametrize("bad", ["", "   ", "A1", "1", "A-B", "Ä", None, 5])
def test_malformed_reference_fails_fast(bad):
    with pytest.raises(ConfigError):
        column_index(bad)
