"""
Question-number label normalization shared by detection, storage and resolution.
"""

import re

__all__ = ["normalize_question_number"]

_PREFIX = re.compile(r"^(?:question|q)\s*\.?\s*(?=\d)")
_NON_ALNUM = re.compile(r"[^0-9a-z]")
_LEADING_ZEROS = re.compile(r"^0+(?=\d)")


def normalize_question_number(label: str) -> str:
    """
    Normalize a question-number label to its comparison key.

    Lowercases, trims, drops a leading "Question"/"Q" token, removes every
    non-alphanumeric character and strips leading zeros, so "Q.1", " 01 ",
    "Question 1" and "1" all map to "1", and "2A)" maps to "2a".

    Args:
        label (str): Raw label from OCR text, a model response or a user query.

    Returns:
        str: The normalized key (empty string if nothing alphanumeric remains).
    """
    key = label.strip().lower()
    key = _PREFIX.sub("", key)
    key = _NON_ALNUM.sub("", key)
    return _LEADING_ZEROS.sub("", key)
