from __future__ import annotations

import re
from typing import Callable, Dict, Optional

# Trailing organizational-form tokens that must not distinguish two companies.
LEGAL_SUFFIXES: tuple[str, ...] = (
    # US
    "llc", "l.l.c.", "l.l.c",
    "inc", "inc.", "incorporated",
    "corp", "corp.", "corporation",
    "co", "co.", "company",
    "ltd", "ltd.", "limited",
    "lp", "l.p.", "lp.",
    "llp", "l.l.p.", "llp.",
    "pllc", "p.l.l.c.",
    # UK
    "plc", "p.l.c.",
    # German
    "gmbh", "g.m.b.h.",
    "ag", "a.g.",
    # French/Spanish
    "sa", "s.a.",
    "sarl", "s.a.r.l.",
    # Dutch / other
    "bv", "b.v.",
    "nv", "n.v.",
    "pty", "pty.",
    "holdings", "group", "international",
    "intl", "intl.",
)

# Every form we try against the tail of a name, longest first so that
# "l.l.p." wins over "l.p.".
_SUFFIX_FORMS: tuple[str, ...] = tuple(
    sorted(
        {form for suffix in LEGAL_SUFFIXES for form in (suffix, suffix.rstrip("."))},
        key=lambda s: (-len(s), s),
    )
)

_NON_ALNUM = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")

COMPANY = "company"
SOURCE = "source"
ENTITY_KINDS: tuple[str, ...] = (COMPANY, SOURCE)


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _strip_trailing_punctuation(s: str) -> str:
    while True:
        stripped = s.rstrip().rstrip(".,").rstrip()
        if stripped == s:
            return s
        s = stripped


def _strip_one_suffix(s: str) -> Optional[str]:
    """Return ``s`` without one trailing legal suffix, or None if it has none."""
    for form in _SUFFIX_FORMS:
        if not s.endswith(form):
            continue
        start = len(s) - len(form)
        if start == 0 or not _is_word_char(s[start - 1]):
            return s[:start]
    return None


def _strip_legal_suffixes(s: str) -> str:
    # Every successful pass removes at least one character.
    for _ in range(len(s) + 1):
        stripped = _strip_one_suffix(s)
        if stripped is None:
            break
        s = _strip_trailing_punctuation(stripped)
    return s


def normalize_company_name(raw: Optional[str]) -> str:
    """Canonical key for a company display name.

    "Google LLC", "google inc." and "GOOGLE, Inc" all map to "google".
    Never raises; a name made only of punctuation or suffixes maps to "".
    """
    s = (raw or "").lower().strip()
    s = _strip_trailing_punctuation(s)
    s = _strip_legal_suffixes(s)
    s = _NON_ALNUM.sub("", s)
    s = _WHITESPACE.sub(" ", s).strip()
    # Dropping punctuation can expose another suffix ("acme (inc)" -> "acme inc").
    return _strip_legal_suffixes(s)


def normalize_source_name(raw: Optional[str]) -> str:
    """Sources only fold case and whitespace; "LinkedIn Group" keeps "group"."""
    return " ".join((raw or "").lower().split())


normalize = normalize_company_name

NORMALIZERS: Dict[str, Callable[[Optional[str]], str]] = {
    COMPANY: normalize_company_name,
    SOURCE: normalize_source_name,
}


def normalizer_for(kind: str) -> Callable[[Optional[str]], str]:
    try:
        return NORMALIZERS[kind]
    except KeyError:
        raise ValueError(f"Unknown entity kind: {kind!r}") from None
