"""Edit-distance string similarity used by every matching heuristic."""

from __future__ import annotations

import re

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def levenshtein_distance(a: str, b: str) -> int:
    """Classic Levenshtein distance with unit costs, full DP matrix."""
    rows = len(b) + 1
    cols = len(a) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,
                    matrix[i][j - 1] + 1,
                    matrix[i - 1][j] + 1,
                )
    return matrix[rows - 1][cols - 1]


def similarity(a: str, b: str) -> float:
    """Return (maxLen - distance) / maxLen in [0, 1]; 1.0 when both are empty."""
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if not longer:
        return 1.0
    distance = levenshtein_distance(longer, shorter)
    return (len(longer) - distance) / len(longer)


def normalize_title(title: str) -> str:
    text = _NON_WORD.sub("", title.lower())
    return _WHITESPACE.sub(" ", text).strip()


def title_match_score(torrent_title: str, expected_title: str) -> int:
    """Normalized title similarity on a 0-100 scale."""
    ratio = similarity(normalize_title(torrent_title), normalize_title(expected_title))
    return max(0, min(100, round(ratio * 100)))
