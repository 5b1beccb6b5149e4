"""
Hungarian collation for title sorting.

Hungarian treats the digraphs (cs, dz, gy, ly, ny, sz, ty, zs) and the
trigraph dzs as single letters of the alphabet, and o/ö, u/ü as different
letters, while the acute accent (á, é, í, ó, ő, ú, ű) only breaks ties.
The sort key compares in three levels like a locale-aware comparison:
base letters, then accents, then case.
"""

import unicodedata
from typing import Tuple

ALPHABET = [
    "a", "b", "c", "cs", "d", "dz", "dzs", "e", "f", "g", "gy", "h", "i",
    "j", "k", "l", "ly", "m", "n", "ny", "o", "ö", "p", "q", "r", "s",
    "sz", "t", "ty", "u", "ü", "v", "w", "x", "y", "z", "zs",
]
PRIMARY = {letter: rank for rank, letter in enumerate(ALPHABET)}

# Long vowels sort with their short pair at the primary level
ACCENTED = {"á": "a", "é": "e", "í": "i", "ó": "o", "ő": "ö", "ú": "u", "ű": "ü"}

# Longest first so "dzs" wins over "dz"
MULTI_LETTERS = ("dzs", "cs", "dz", "gy", "ly", "ny", "sz", "ty", "zs")

# Character classes, ordered: whitespace < punctuation < digits < letters
_SPACE, _PUNCT, _DIGIT, _LETTER = range(4)


def _single_char(ch: str, lowered: str) -> Tuple[Tuple[int, int], int]:
    """Return ((class, primary rank), accent level) for one character."""
    if lowered in PRIMARY:
        return (_LETTER, PRIMARY[lowered]), 0
    if lowered in ACCENTED:
        return (_LETTER, PRIMARY[ACCENTED[lowered]]), 1
    if ch.isdigit():
        return (_DIGIT, unicodedata.digit(ch, 0)), 0
    if ch.isspace():
        return (_SPACE, 0), 0
    if ch.isalpha():
        base = unicodedata.normalize("NFD", lowered)[:1]
        if base in PRIMARY:
            return (_LETTER, PRIMARY[base]), 2
        return (_LETTER, len(ALPHABET) + ord(lowered[:1])), 0
    return (_PUNCT, ord(ch)), 0


def hungarian_sort_key(text: str) -> tuple:
    """Sort key giving Hungarian alphabetical order."""
    text = text or ""
    lowered = [ch.lower() for ch in text]
    primary, secondary, tertiary = [], [], []

    i = 0
    while i < len(text):
        for letter in MULTI_LETTERS:
            if "".join(lowered[i:i + len(letter)]) == letter:
                chunk = text[i:i + len(letter)]
                primary.append((_LETTER, PRIMARY[letter]))
                secondary.append(0)
                tertiary.append(0 if chunk.islower() else 1)
                i += len(letter)
                break
        else:
            ch = text[i]
            rank, accent = _single_char(ch, lowered[i])
            primary.append(rank)
            secondary.append(accent)
            tertiary.append(1 if ch.isupper() else 0)
            i += 1

    return tuple(primary), tuple(secondary), tuple(tertiary), text
