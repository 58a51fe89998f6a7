"""Sequential short code generation.

Short codes are derived from the numeric id of the mapping they name. The
encoding is a bijective base-62 numeral over ``a..z A..Z 0..9`` written
least-significant digit first: digit values run from 1 to 62, so there is no
zero digit, no padding, and every positive integer has exactly one code.

    >>> encode_short_code(1)
    'a'
    >>> encode_short_code(62)
    '9'
    >>> encode_short_code(63)
    'aa'
    >>> encode_short_code(64)
    'ba'
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.url import SHORT_CODE_MAX_LENGTH
from app.repositories.url_repository import URLRepository

logger = logging.getLogger(__name__)

BASE62_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
BASE = len(BASE62_ALPHABET)
_DIGIT_VALUES = {char: index + 1 for index, char in enumerate(BASE62_ALPHABET)}


def encode_short_code(value: int) -> str:
    """
    Encode a positive identifier as a short code.

    Args:
        value: Identifier to encode (must be >= 1)

    Returns:
        str: The short code

    Raises:
        ValueError: When value is less than 1
    """
    if value < 1:
        raise ValueError(f"Identifier must be a positive integer, got {value}")

    digits = []
    while value > 0:
        value -= 1
        digits.append(BASE62_ALPHABET[value % BASE])
        value //= BASE
    return "".join(digits)


def decode_short_code(code: str) -> int:
    """
    Recover the identifier a short code was generated from.

    Raises:
        ValueError: When the code is empty or contains a character outside the alphabet
    """
    if not code:
        raise ValueError("Short code cannot be empty")

    value = 0
    for char in reversed(code):
        digit = _DIGIT_VALUES.get(char)
        if digit is None:
            raise ValueError(f"Invalid character in short code: {char!r}")
        value = value * BASE + digit
    return value


def is_valid_short_code(code: str) -> bool:
    """Check whether ``code`` could have been issued by the generator."""
    if not code or len(code) > SHORT_CODE_MAX_LENGTH:
        return False
    return all(char in _DIGIT_VALUES for char in code)


class ShortCodeGenerator:
    """
    Produces the next short code from the registry's latest id.

    The candidate id is one past the most recently created mapping, or 1
    for an empty registry. Two callers reading the same latest id get the
    same code; the registry's unique constraint decides which insert wins.
    """

    def __init__(self, url_repository: URLRepository):
        self.url_repository = url_repository

    async def next_code(self, db: AsyncSession) -> str:
        """
        Compute the code for the next mapping.

        Raises:
            StorageUnavailableError: If the latest id cannot be read
        """
        latest_id = await self.url_repository.highest_id(db)
        candidate = 1 if latest_id is None else latest_id + 1
        code = encode_short_code(candidate)
        logger.debug(f"Next short code candidate {candidate} -> {code}")
        return code
