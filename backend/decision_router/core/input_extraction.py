"""Input Extraction: deterministic fast paths for turning user text into values.

Invariants:
    - Pure functions, no IO, no language model
    - Integer extraction reads unsigned digit runs in order of appearance
    - Enum tokens are UPPER_SNAKE; list results are de-duplicated in first-seen order

Design Decisions:
    - Enum vocabulary comes from the trait's parse hint rather than a hard-coded
      table: `Map to INDOOR (stay in, home), OUTDOOR or NO_PREFERENCE` declares
      three tokens and two extra phrases for INDOOR
    - Longest matching phrase wins so "no preference" beats "preference"
"""

import re
from dataclasses import dataclass

_DIGIT_RUN = re.compile(r"\d+")
_HINT_TOKEN = re.compile(r"\b[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)*\b")
_HINT_SYNONYMS = re.compile(r"\b([A-Z][A-Z0-9]*(?:_[A-Z0-9]+)*)\s*\(([^)]*)\)")
_LIST_SEPARATORS = re.compile(r"\s*(?:,|;|&|\band\b)\s*", re.IGNORECASE)
_NON_TOKEN_CHARS = re.compile(r"[^A-Z0-9]+")

# Uppercase words that show up in hints without being enum tokens
_HINT_STOPWORDS = frozenset({"A", "I", "OR", "AND", "TO", "OF", "THE"})


def extract_integers(text: str) -> list[int]:
    return [int(m) for m in _DIGIT_RUN.findall(text or "")]


def extract_bounded_integers(text: str, lower: int, upper: int) -> list[int]:
    """Digit runs within [lower, upper], order preserved."""
    return [n for n in extract_integers(text) if lower <= n <= upper]


def normalize_enum_token(raw: str) -> str:
    """'no preference' -> 'NO_PREFERENCE'. Returns '' when nothing usable remains."""
    return _NON_TOKEN_CHARS.sub("_", (raw or "").strip().upper()).strip("_")


def dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def split_enum_list(text: str) -> list[str]:
    """Split on , ; & and the word "and", normalize, de-duplicate."""
    parts = _LIST_SEPARATORS.split(text or "")
    return dedupe([normalize_enum_token(p) for p in parts])


# ─── Enum keyword matching ───────────────────────────────────────

@dataclass(frozen=True)
class EnumVocabulary:
    """Phrase -> token table parsed out of a parse hint."""
    tokens: tuple[str, ...]
    phrases: tuple[tuple[str, str], ...]


def enum_vocabulary(parse_hint: str, options: tuple[str, ...] = ()) -> EnumVocabulary:
    """Collect tokens from the hint (and trait options) with their matching phrases."""
    tokens = dedupe(
        [t for t in _HINT_TOKEN.findall(parse_hint or "") if t not in _HINT_STOPWORDS]
        + [normalize_enum_token(o) for o in options],
    )

    phrases: list[tuple[str, str]] = []
    for token in tokens:
        phrases.append((token.lower().replace("_", " "), token))
    for token, synonym_list in _HINT_SYNONYMS.findall(parse_hint or ""):
        for synonym in synonym_list.split(","):
            phrase = synonym.strip().lower()
            if phrase:
                phrases.append((phrase, token))
    for option in options:
        phrase = option.strip().lower()
        if phrase:
            phrases.append((phrase, normalize_enum_token(option)))

    return EnumVocabulary(tokens=tuple(tokens), phrases=tuple(phrases))


def match_enum_keyword(
    text: str, parse_hint: str, options: tuple[str, ...] = (),
) -> str | None:
    """Token whose longest declared phrase occurs in the input, else None."""
    normalized = " ".join((text or "").lower().replace("_", " ").split())
    if not normalized:
        return None

    best: tuple[int, str] | None = None
    for phrase, token in enum_vocabulary(parse_hint, options).phrases:
        if not re.search(rf"(?<![a-z0-9]){re.escape(phrase)}", normalized):
            continue
        if best is None or len(phrase) > best[0]:
            best = (len(phrase), token)
    return best[1] if best else None
