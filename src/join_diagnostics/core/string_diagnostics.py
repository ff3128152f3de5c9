"""
String Diagnostics - detectors for text key columns.

Each detector is a pure, total function over Polars Series:
- Whitespace: leading/trailing whitespace
- Case mismatch: keys that only match case-insensitively
- Encoding: invisible code points and mixed Unicode normalization
- Empty strings: "" values, which match each other but never missing values
- Near matches: small edit distance between unmatched keys

A detector handed a non-text column returns an empty result, since the
check does not apply to that kind of data.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

import polars as pl

from join_diagnostics.core.columns import series_kind, unique_present_values
from join_diagnostics.core.diagnostics_config import (
    INVISIBLE_CHARACTERS,
    NEAR_MATCH_MAX_CANDIDATES,
    NEAR_MATCH_MAX_DISTANCE,
    NEAR_MATCH_MIN_LENGTH,
    NEAR_MATCH_X_SAMPLE,
    NEAR_MATCH_Y_SAMPLE,
)

_LEADING_WS = re.compile(r"^\s", re.ASCII)
_TRAILING_WS = re.compile(r"\s$", re.ASCII)
_INVISIBLE = re.compile("[" + "".join(INVISIBLE_CHARACTERS) + "]")


def _text_values(series: pl.Series) -> list[str | None] | None:
    """Values of a textual column, or None when the column is not textual."""
    if not series_kind(series).is_textual:
        return None
    return [None if v is None else str(v) for v in series.to_list()]


@dataclass(frozen=True)
class WhitespaceResult:
    leading: tuple[int, ...] = ()
    trailing: tuple[int, ...] = ()
    affected_values: tuple[str, ...] = ()

    @property
    def has_issues(self) -> bool:
        return bool(self.affected_values)


def detect_whitespace(series: pl.Series) -> WhitespaceResult:
    """
    Find values with leading or trailing whitespace.

    Returns:
        Row indices per position and the distinct affected values
    """
    values = _text_values(series)
    if values is None:
        return WhitespaceResult()

    leading: list[int] = []
    trailing: list[int] = []
    affected: dict[str, None] = {}
    for i, value in enumerate(values):
        if value is None:
            continue
        if _LEADING_WS.search(value):
            leading.append(i)
            affected[value] = None
        if _TRAILING_WS.search(value):
            trailing.append(i)
            affected[value] = None

    return WhitespaceResult(tuple(leading), tuple(trailing), tuple(affected))


@dataclass(frozen=True)
class CaseMismatchResult:
    mismatches: tuple[tuple[str, str], ...] = ()  # (x_key, y_key) pairs

    @property
    def has_issues(self) -> bool:
        return bool(self.mismatches)


def detect_case_mismatch(x: pl.Series, y: pl.Series) -> CaseMismatchResult:
    """
    Find x keys with no exact y match that do match after case folding.

    Each such x key is paired with every differently-cased y counterpart.
    """
    if _text_values(x) is None or _text_values(y) is None:
        return CaseMismatchResult()

    x_unique = [str(v) for v in unique_present_values(x)]
    y_unique = [str(v) for v in unique_present_values(y)]
    y_exact = set(y_unique)

    y_by_folded: dict[str, list[str]] = {}
    for value in y_unique:
        y_by_folded.setdefault(value.casefold(), []).append(value)

    pairs = []
    for value in x_unique:
        if value in y_exact:
            continue
        for counterpart in y_by_folded.get(value.casefold(), []):
            pairs.append((value, counterpart))

    return CaseMismatchResult(tuple(pairs))


@dataclass(frozen=True)
class EncodingResult:
    invisible_chars: tuple[int, ...] = ()
    affected_values: tuple[str, ...] = ()
    mixed_normalization: bool = False
    non_normalized_values: tuple[str, ...] = ()

    @property
    def has_issues(self) -> bool:
        return bool(self.invisible_chars) or self.mixed_normalization


def detect_encoding_issues(series: pl.Series) -> EncodingResult:
    """
    Find invisible code points and mixed Unicode normalization.

    Invisible characters: zero-width space/non-joiner/joiner, byte order mark,
    non-breaking space. Mixed normalization means the column holds both NFC
    text and text that changes under NFC, so visually equal keys differ.
    """
    values = _text_values(series)
    if values is None:
        return EncodingResult()

    invisible: list[int] = []
    affected: dict[str, None] = {}
    non_nfc: dict[str, None] = {}
    has_nfc_non_ascii = False
    for i, value in enumerate(values):
        if value is None:
            continue
        if _INVISIBLE.search(value):
            invisible.append(i)
            affected[value] = None
        if value.isascii():
            continue
        if unicodedata.normalize("NFC", value) != value:
            non_nfc[value] = None
        else:
            has_nfc_non_ascii = True

    return EncodingResult(
        invisible_chars=tuple(invisible),
        affected_values=tuple(affected),
        mixed_normalization=bool(non_nfc) and has_nfc_non_ascii,
        non_normalized_values=tuple(non_nfc),
    )


@dataclass(frozen=True)
class EmptyStringResult:
    indices: tuple[int, ...] = ()

    @property
    def n_empty(self) -> int:
        return len(self.indices)

    @property
    def has_issues(self) -> bool:
        return bool(self.indices)


def detect_empty_strings(series: pl.Series) -> EmptyStringResult:
    values = _text_values(series)
    if values is None:
        return EmptyStringResult()
    return EmptyStringResult(tuple(i for i, v in enumerate(values) if v == ""))


def levenshtein(s1: str, s2: str) -> int:
    """
    Levenshtein (edit) distance between two strings.

    Minimum number of single-character insertions, deletions and
    substitutions, each costing 1, that turn s1 into s2.
    """
    if s1 == s2:
        return 0
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    if not s2:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row
    return previous_row[-1]


@dataclass(frozen=True)
class NearMatch:
    x_key: str
    y_key: str
    distance: int


@dataclass(frozen=True)
class NearMatchResult:
    near_matches: tuple[NearMatch, ...] = ()

    @property
    def has_issues(self) -> bool:
        return bool(self.near_matches)


def detect_near_matches(
    x: pl.Series,
    y: pl.Series,
    max_distance: int = NEAR_MATCH_MAX_DISTANCE,
    max_candidates: int = NEAR_MATCH_MAX_CANDIDATES,
    x_sample: int = NEAR_MATCH_X_SAMPLE,
    y_sample: int = NEAR_MATCH_Y_SAMPLE,
) -> NearMatchResult:
    """
    Find unmatched x keys within a small edit distance of some y key.

    Cost control: only the first x_sample unmatched x keys are compared with
    the first y_sample unique y keys, keys shorter than NEAR_MATCH_MIN_LENGTH
    are skipped, pairs whose lengths differ by more than max_distance are
    skipped without computing a distance, and scanning stops once
    max_candidates pairs are collected. The result is a sample of suspects,
    not an exhaustive list.

    Returns:
        Pairs with 0 < distance <= max_distance, ascending by distance
    """
    if _text_values(x) is None or _text_values(y) is None:
        return NearMatchResult()

    y_unique = [str(v) for v in unique_present_values(y)]
    y_set = set(y_unique)
    x_unmatched = [str(v) for v in unique_present_values(x) if str(v) not in y_set]
    if not x_unmatched or not y_unique:
        return NearMatchResult()

    candidates: list[NearMatch] = []
    for x_key in x_unmatched[:x_sample]:
        if len(x_key) < NEAR_MATCH_MIN_LENGTH:
            continue
        for y_key in y_unique[:y_sample]:
            if abs(len(x_key) - len(y_key)) > max_distance:
                continue
            distance = levenshtein(x_key, y_key)
            if 0 < distance <= max_distance:
                candidates.append(NearMatch(x_key, y_key, distance))
        if len(candidates) >= max_candidates:
            break

    candidates.sort(key=lambda m: m.distance)
    return NearMatchResult(tuple(candidates[:max_candidates]))
