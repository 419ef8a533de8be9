"""Text helpers shared by the table parsers"""

import re
from typing import Union

# Sentinel for unknown stat values ("?", "??", "-", "--" ...)
UNKNOWN_VALUE = '-'

NUMBER_PATTERN = re.compile(r'^-?\d+(\.\d+)?$')
UNKNOWN_PATTERN = re.compile(r'\?+|-+')
WORD_PATTERN = re.compile(r'[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+')

# Header synonyms, applied in order after camel casing
FIELD_SYNONYMS = [
    (re.compile(r'unlock'), 'rarity'),  # Some tables use unlock, others rarity
    (re.compile(r'effects|specialEffects'), 'effect'),
]

Scalar = Union[str, int, float]


def camel_case(text: str) -> str:
    """Convert header text like 'Move Type' or 'HP' to 'moveType' / 'hp'"""
    words = WORD_PATTERN.findall(text)
    if not words:
        return ''
    first, rest = words[0], words[1:]
    return first.lower() + ''.join(word[:1].upper() + word[1:].lower() for word in rest)


def normalize_field_name(text: str) -> str:
    """
    Turn a header cell text into a record field name.

    Idempotent: normalizing an already normalized name returns it unchanged.
    """
    name = camel_case(text.strip())
    for pattern, replacement in FIELD_SYNONYMS:
        name = pattern.sub(replacement, name)
    return name


def maybe_to_number(value: Scalar) -> Scalar:
    """Parse a cell value as int or float if it looks numeric, else return it as is"""
    if not isinstance(value, str):
        return value
    token = value.strip()
    match = NUMBER_PATTERN.match(token)
    if not match:
        return value
    return float(token) if match.group(1) else int(token)

