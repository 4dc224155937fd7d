"""Slate extraction from transcript text.

A narrator calls the slate before each take ("scene twelve alpha, take
three"). This module finds the scene and take identifiers in a transcript
fragment and records them on the session's pending slate until an ACTION
call confirms them.
"""

import logging
import re
from dataclasses import dataclass
from typing import NamedTuple

from slatecap.numbers import parse_number_words

logger = logging.getLogger(__name__)

NATO_ALPHABET: dict[str, str] = {
    "alpha": "A",
    "alfa": "A",
    "bravo": "B",
    "charlie": "C",
    "delta": "D",
    "echo": "E",
    "foxtrot": "F",
    "golf": "G",
    "hotel": "H",
    "india": "I",
    "juliet": "J",
    "juliett": "J",
    "kilo": "K",
    "lima": "L",
    "mike": "M",
    "november": "N",
    "oscar": "O",
    "papa": "P",
    "quebec": "Q",
    "romeo": "R",
    "sierra": "S",
    "tango": "T",
    "uniform": "U",
    "victor": "V",
    "whiskey": "W",
    "whisky": "W",
    "x-ray": "X",
    "xray": "X",
    "yankee": "Y",
    "zulu": "Z",
}

# Structural keywords that end a scene or take block
TERMINATORS = frozenset({"take", "action", "rolling", "turnover", "cut"})

_TOKEN_RE = re.compile(r"[^\W_]+(?:['’-][^\W_]+)*|[^\w\s]|_")
_LEADING_DIGITS_RE = re.compile(r"(\d+)([^\W\d_]*)$")


class Token(NamedTuple):
    """A lower-cased word, or a punctuation boundary, with its offset."""

    text: str
    start: int
    is_word: bool


@dataclass
class PendingSlate:
    """A spoken slate not yet confirmed by an ACTION call."""

    scene: str | None = None
    take: str | None = None
    captured_at: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.scene is None and self.take is None

    def clear(self) -> None:
        self.scene = None
        self.take = None
        self.captured_at = None

    def header(self) -> str | None:
        """Render as "SCENE 12A / TAKE 3", omitting absent parts."""
        parts = []
        if self.scene is not None:
            parts.append(f"SCENE {self.scene}")
        if self.take is not None:
            parts.append(f"TAKE {self.take}")
        return " / ".join(parts) or None


def tokenize(text: str) -> list[Token]:
    """Split text into word tokens and punctuation boundaries.

    Hyphenated words are split into their parts ("twenty-three") unless the
    whole word is a phonetic letter ("x-ray").
    """
    tokens = []
    for match in _TOKEN_RE.finditer(text):
        raw = match.group().lower()
        start = match.start()
        if not raw[0].isalnum():
            tokens.append(Token(raw, start, False))
            continue
        if "-" in raw and raw not in NATO_ALPHABET:
            offset = start
            for part in raw.split("-"):
                tokens.append(Token(part, offset, True))
                offset += len(part) + 1
            continue
        tokens.append(Token(raw, start, True))
    return tokens


def find_block(tokens: list[Token], keyword: str) -> list[str] | None:
    """Return the words following the first ``keyword`` that has any.

    The block stops before a structural keyword, a punctuation boundary or
    the end of the text.
    """
    for i, token in enumerate(tokens):
        if not token.is_word or token.text != keyword:
            continue
        block = []
        for following in tokens[i + 1 :]:
            if not following.is_word or following.text in TERMINATORS:
                break
            block.append(following.text)
        if block:
            return block
    return None


def letter_for(word: str) -> str:
    """Map a phonetic alphabet word to its letter, else the word's initial."""
    return NATO_ALPHABET.get(word, word[:1].upper())


def extract_scene(tokens: list[Token]) -> str | None:
    """Find a scene identifier such as "12A" in tokenized text."""
    block = find_block(tokens, "scene")
    if block is None:
        return None

    letters = ""
    match = parse_number_words(block)
    if match is not None:
        number, rest = match.value, block[match.words_consumed :]
    else:
        digits = _LEADING_DIGITS_RE.match(block[0])
        if digits is None:
            return None
        number, rest = int(digits.group(1)), block[1:]
        letters = digits.group(2).upper()

    letters += "".join(letter_for(word) for word in rest)
    return f"{number}{letters}"


def extract_take(tokens: list[Token]) -> str | None:
    """Find a take number; a literal "take <digits>" always wins."""
    for current, following in zip(tokens, tokens[1:]):
        if current.is_word and current.text == "take" and following.is_word:
            digits = re.match(r"\d+", following.text)
            if digits is not None:
                return str(int(digits.group()))

    block = find_block(tokens, "take")
    if block is None:
        return None
    match = parse_number_words(block)
    if match is None:
        return None
    return str(match.value)


class SlateExtractor:
    """Updates a pending slate from transcript text. Never emits annotations."""

    def extract(self, text: str, slate: PendingSlate, now: float) -> bool:
        """Capture scene and take identifiers found in ``text``.

        Returns:
            True if the scene or the take was updated.
        """
        tokens = tokenize(text)
        scene = extract_scene(tokens)
        take = extract_take(tokens)

        if scene is not None:
            slate.scene = scene
        if take is not None:
            slate.take = take
        if scene is None and take is None:
            return False

        slate.captured_at = now
        logger.debug(f"Captured slate scene={slate.scene} take={slate.take}")
        return True
