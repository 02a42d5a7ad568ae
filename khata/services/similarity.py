from typing import List


def levenshtein_distance(a: str, b: str) -> int:
    rows, cols = len(a) + 1, len(b) + 1
    table: List[List[int]] = [[0] * cols for _ in range(rows)]

    for i in range(rows):
        table[i][0] = i
    for j in range(cols):
        table[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            table[i][j] = min(
                table[i - 1][j] + 1,         # deletion
                table[i][j - 1] + 1,         # insertion
                table[i - 1][j - 1] + cost,  # substitution
            )

    return table[-1][-1]


def similarity(a: str, b: str) -> float:
    """Case-insensitive edit-distance similarity on a 0..1 scale.

    Two empty strings are identical (1.0).
    """
    a, b = a.lower(), b.lower()
    max_len = max(len(a), len(b))

    if max_len == 0:
        return 1.0

    return (max_len - levenshtein_distance(a, b)) / max_len
