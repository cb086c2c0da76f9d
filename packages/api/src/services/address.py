# This project was developed with assistance from AI tools.
"""Postal address canonicalisation for fuzzy comparison.

Output is only ever compared, never stored -- callers keep the original text.
"""

import re

_PUNCTUATION_RE = re.compile(r"[.,#\-]")
_WHITESPACE_RE = re.compile(r"\s+")

STREET_SUFFIXES: dict[str, str] = {
    "street": "st",
    "avenue": "ave",
    "boulevard": "blvd",
    "drive": "dr",
    "lane": "ln",
    "road": "rd",
    "court": "ct",
    "circle": "cir",
    "place": "pl",
}

_SUFFIX_RES = [(re.compile(rf"\b{long}\b"), short) for long, short in STREET_SUFFIXES.items()]

# Tokens that end the street portion of an address: unit designators and the
# state abbreviations seen in practice.
_STREET_TERMINATOR_RE = re.compile(
    r"\b(?:apt|unit|suite|ste|city|ca|az|nv|tx|fl|ny|wa|or)\b"
)


def normalize_address(text: str) -> str:
    """Lower-case, strip punctuation, contract street suffixes, collapse spaces."""
    result = _PUNCTUATION_RE.sub(" ", text.lower())
    for pattern, short in _SUFFIX_RES:
        result = pattern.sub(short, result)
    return _WHITESPACE_RE.sub(" ", result).strip()


def street_portion(normalized: str) -> str:
    """Return the part of a normalized address before any unit/city/state token."""
    return _STREET_TERMINATOR_RE.split(normalized, maxsplit=1)[0].strip()
