"""
ISBN input handling for the catalog.

For isbn related info, see https://isbn-information.com/
"""

VALID_LENGTHS = (10, 13)
VALIDATION_ERRORS = {
    "blank": "ISBN is required.",
    "length": "ISBN must be 10 or 13 characters long.",
    "invalid": "ISBN has invalid characters.",
    "X": "Only the last character of an ISBN 10 may be 'X'.",
    }


def normalize(isbn: str) -> str:
    """
    Strips separators from an ISBN 10 or 13 and checks its shape

    Parameters
    ----------
    isbn : str
        An ISBN code, optionally with dashes or spaces

    Returns
    -------
    str
        The ISBN without separators, with a trailing 'x' upper-cased

    Raises
    ------
    ValueError
        If isbn is blank, has invalid characters or is not of proper length

    """
    if not isbn or not isbn.strip():
        raise ValueError(VALIDATION_ERRORS["blank"])
    stripped = isbn.replace("-", "").replace(" ", "").upper()
    if len(stripped) not in VALID_LENGTHS:
        raise ValueError(VALIDATION_ERRORS["length"])
    if any(char not in "0123456789X" for char in stripped):
        raise ValueError(VALIDATION_ERRORS["invalid"])
    if "X" in stripped[:-1] or (stripped.endswith("X") and len(stripped) == 13):
        raise ValueError(VALIDATION_ERRORS["X"])
    return stripped
