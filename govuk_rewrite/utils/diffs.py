"""Line ending normalization and line-level diffs."""


def normalize_line_endings(content: str) -> str:
    """Normalize line endings to LF.

    Args:
        content: Content with potentially mixed line endings

    Returns:
        Content with normalized line endings
    """
    return content.replace("\r\n", "\n").replace("\r", "\n")


def diff_lines(original: str, rewritten: str) -> list[str]:
    """Compute a line diff using a longest-common-subsequence table.

    When an insertion and a deletion are equally good, the insertion is
    emitted first while backtracking, so identical inputs always give
    identical output.

    Args:
        original: Original text
        rewritten: Rewritten text

    Returns:
        Lines prefixed with "  " (unchanged), "- " (removed) or "+ " (added)
    """
    a = original.split("\n")
    b = rewritten.split("\n")
    m, n = len(a), len(b)

    lcs = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if a[i - 1] == b[j - 1]:
                lcs[i][j] = lcs[i - 1][j - 1] + 1
            else:
                lcs[i][j] = max(lcs[i - 1][j], lcs[i][j - 1])

    # Backtrack from the bottom-right corner, then reverse
    lines: list[str] = []
    i, j = m, n
    while i > 0 or j > 0:
        if i > 0 and j > 0 and a[i - 1] == b[j - 1]:
            lines.append(f"  {a[i - 1]}")
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or lcs[i][j - 1] >= lcs[i - 1][j]):
            lines.append(f"+ {b[j - 1]}")
            j -= 1
        else:
            lines.append(f"- {a[i - 1]}")
            i -= 1

    lines.reverse()
    return lines
