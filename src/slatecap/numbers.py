"""Spoken number parsing.

Turns the leading number phrase of a transcript fragment into an integer:
"twenty three" -> 23, "one hundred and five" -> 105, "5" -> 5.
"""

from collections.abc import Sequence
from typing import NamedTuple

UNITS: dict[str, int] = {
    "zero": 0,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
}

TENS: dict[str, int] = {
    "twenty": 20,
    "thirty": 30,
    "forty": 40,
    "fifty": 50,
    "sixty": 60,
    "seventy": 70,
    "eighty": 80,
    "ninety": 90,
}

SCALES: dict[str, int] = {
    "hundred": 100,
    "thousand": 1000,
}

CONNECTIVES = frozenset({"and"})


class NumberMatch(NamedTuple):
    """A number recognised at the start of a phrase."""

    value: int
    words_consumed: int


def split_words(phrase: str) -> list[str]:
    """Lower-case ``phrase``, treat hyphens as spaces and split on whitespace."""
    return phrase.lower().replace("-", " ").split()


def parse_number(phrase: str) -> NumberMatch | None:
    """Parse the leading number of a free-text phrase.

    Returns:
        The value and how many words it used, or None when the phrase does
        not start with a number.
    """
    return parse_number_words(split_words(phrase))


def parse_number_words(words: Sequence[str]) -> NumberMatch | None:
    """Greedy left-to-right parse over already split, lower-case words.

    A digit token ends the parse and is added to what came before
    ("twenty 3" -> 23). Scale words multiply the running total, with an
    empty total counting as 1 ("hundred" -> 100). "and" is skipped. Any
    other word stops the parse without error.
    """
    current = 0
    consumed = 0
    recognised = False

    for word in words:
        if word.isascii() and word.isdigit():
            current += int(word)
            consumed += 1
            recognised = True
            break
        if word in UNITS:
            current += UNITS[word]
        elif word in TENS:
            current += TENS[word]
        elif word in SCALES:
            current = (current or 1) * SCALES[word]
        elif word in CONNECTIVES:
            consumed += 1
            continue
        else:
            break
        consumed += 1
        recognised = True

    if not recognised:
        return None
    return NumberMatch(current, consumed)
