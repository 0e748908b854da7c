"""
US to UK spelling detection and replacement for editorial content.

Each family is a regex over known word stems plus the inflections that keep
the same UK mapping. Matching is case-insensitive; replacement keeps the case
of the word it replaces (lower, Capitalised or UPPER).
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SpellingFamily:
    category: str
    pattern: re.Pattern[str]
    to_uk: Callable[[re.Match[str]], str]


@dataclass
class SpellingMatch:
    """All occurrences of one US spelling in a text."""

    us_spelling: str
    uk_spelling: str
    category: str
    matches: list[str] = field(default_factory=list)


def _words(*stems: str) -> str:
    return "|".join(stems)


_IZE = re.compile(
    r"\b("
    + _words(
        "optim", "organ", "real", "recogn", "minim", "maxim", "priorit", "util",
        "summar", "standard", "character", "normal", "visual", "custom", "digit",
        "emphas", "special", "categor", "synchron", "parameter", "capital",
        "central", "commercial", "modern", "monet", "author", "initial", "memor",
    )
    + r")iz(e|es|ed|ing|ation|ations|er|ers)\b",
    re.IGNORECASE,
)
_YZE = re.compile(r"\b(analy|paraly|cataly)z(e|es|ed|ing|er|ers)\b", re.IGNORECASE)
_OR = re.compile(
    r"\b("
    + _words(
        "col", "behavi", "fav", "flav", "hon", "hum", "lab", "neighb", "rum",
        "vap", "harb", "endeav",
    )
    + r")or(s|ed|ing|ful|able|ite|ites|al)?\b",
    re.IGNORECASE,
)
_ER = re.compile(
    r"\b(" + _words("cent", "fib", "theat", "lit", "calib", "somb", "lust", "meag", "sab")
    + r")er(s|ed)?\b",
    re.IGNORECASE,
)
_SE = re.compile(r"\b(defen|offen|licen|preten)se(s)?\b", re.IGNORECASE)
_OG = re.compile(r"\b(catal|dial|anal|epil|monol|prol)og(s)?\b", re.IGNORECASE)
_SINGLE_L = re.compile(
    r"\b("
    + _words(
        "travel", "model", "label", "cancel", "signal", "fuel", "level", "counsel",
        "tunnel", "channel", "total", "jewel", "marshal",
    )
    + r")(ing|ed|er|ers)\b",
    re.IGNORECASE,
)


def _er_to_re(m: re.Match[str]) -> str:
    suffix = m.group(2) or ""
    if suffix.lower() == "ed":
        return f"{m.group(1)}red"
    return f"{m.group(1)}re{suffix}"


FAMILIES: tuple[SpellingFamily, ...] = (
    SpellingFamily("ize-ise", _IZE, lambda m: f"{m.group(1)}is{m.group(2)}"),
    SpellingFamily("ize-ise", _YZE, lambda m: f"{m.group(1)}ys{m.group(2)}"),
    SpellingFamily("or-our", _OR, lambda m: f"{m.group(1)}our{m.group(2) or ''}"),
    SpellingFamily("er-re", _ER, _er_to_re),
    SpellingFamily("se-ce", _SE, lambda m: f"{m.group(1)}ce{m.group(2) or ''}"),
    SpellingFamily("og-ogue", _OG, lambda m: f"{m.group(1)}ogue{m.group(2) or ''}"),
    SpellingFamily(
        "single-l", _SINGLE_L, lambda m: f"{m.group(1)}{m.group(1)[-1]}{m.group(2)}"
    ),
)


def match_case(source: str, replacement: str) -> str:
    """Give replacement the casing pattern of source."""
    if source.isupper() and len(source) > 1:
        return replacement.upper()
    if source[:1].isupper():
        return replacement[:1].upper() + replacement[1:].lower()
    return replacement.lower()


def find_us_spellings(
    text: str, skip: Callable[[str], bool] | None = None
) -> list[SpellingMatch]:
    """Group US spellings in text by word, in order of first appearance.

    Words for which `skip` returns True are not reported.
    """
    if not text:
        return []

    found: dict[str, SpellingMatch] = {}
    hits: list[tuple[int, str]] = []
    for family in FAMILIES:
        for m in family.pattern.finditer(text):
            word = m.group(0)
            if skip is not None and skip(word):
                continue
            key = word.lower()
            if key not in found:
                found[key] = SpellingMatch(
                    us_spelling=key,
                    uk_spelling=family.to_uk(m).lower(),
                    category=family.category,
                )
                hits.append((m.start(), key))
            found[key].matches.append(word)

    return [found[key] for _, key in sorted(hits)]


def replace_us_spellings(text: str, skip: Callable[[str], bool] | None = None) -> str:
    """Rewrite every known US spelling in text to its UK form, except skipped words."""
    if not text:
        return text

    def convert(m: re.Match[str], family: SpellingFamily) -> str:
        word = m.group(0)
        if skip is not None and skip(word):
            return word
        return match_case(word, family.to_uk(m))

    for family in FAMILIES:
        text = family.pattern.sub(lambda m, f=family: convert(m, f), text)
    return text
