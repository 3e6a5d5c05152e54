import pytest

from services.isbn_utils import VALIDATION_ERRORS, normalize


@pytest.mark.parametrize("raw, expected", [
    ("978-0-441-17271-9", "9780441172719"),
    ("0 441 17271 7", "0441172717"),
    ("080442957x", "080442957X"),
    (" 9780441172719 ", "9780441172719"),
])
def test_normalize(raw, expected):
    assert normalize(raw) == expected


@pytest.mark.parametrize("raw, error", [
    ("", "blank"),
    ("   ", "blank"),
    ("12345", "length"),
    ("97804411727190", "length"),
    ("97804411727A9", "invalid"),
    ("08044X9576", "X"),
    ("978044117271X", "X"),
])
def test_normalize_rejects(raw, error):
    with pytest.raises(ValueError) as exc:
        normalize(raw)
    assert str(exc.value) == VALIDATION_ERRORS[error]
