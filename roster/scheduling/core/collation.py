"""
Czech ordering of worker names, compared at base-letter strength.

Case and most accents do not count (á = a, ď = d, ů = u), but č, ř, š and ž
are letters of their own that follow c, r, s and z, and the digraph "ch" is
one letter between h and i. Digits sort before letters and other characters
before digits; characters outside the Czech alphabet follow it by code point.
"""

import unicodedata
from typing import List, Tuple

CZECH_ALPHABET = "a b c č d e f g h ch i j k l m n o p q r ř s š t u v w x y z ž".split()

_RANK = {letter: rank for rank, letter in enumerate(CZECH_ALPHABET)}
_SEPARATE_LETTERS = frozenset("čřšž")

_OTHER, _DIGIT, _LETTER, _FOREIGN = range(4)


def _base_letters(text: str) -> str:
    """Casefold and drop diacritics except on the letters that stand alone."""
    out = []
    for ch in unicodedata.normalize("NFC", text.casefold()):
        if ch in _SEPARATE_LETTERS:
            out.append(ch)
        else:
            out.extend(c for c in unicodedata.normalize("NFKD", ch) if not unicodedata.combining(c))
    return "".join(out)


def primary_weights(text: str) -> List[Tuple[int, int]]:
    base = _base_letters(text)
    weights = []
    i = 0
    while i < len(base):
        if base.startswith("ch", i):
            weights.append((_LETTER, _RANK["ch"]))
            i += 2
            continue
        ch = base[i]
        if ch in _RANK:
            weights.append((_LETTER, _RANK[ch]))
        elif ch.isdigit():
            weights.append((_DIGIT, ord(ch)))
        elif ch.isalpha():
            weights.append((_FOREIGN, ord(ch)))
        else:
            weights.append((_OTHER, ord(ch)))
        i += 1
    return weights


def name_sort_key(name: str):
    """Czech order ignoring case and accents; ties broken by the folded, then raw, name."""
    return (primary_weights(name), name.casefold(), name)
