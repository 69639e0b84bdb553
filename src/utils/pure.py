from math import ceil
from typing import List, Literal, Optional


def to_int(val, default: int = 0) -> int:
    """Parse user input as int; blank or junk gives the default."""
    try:
        return int(str(val).strip())
    except (TypeError, ValueError):
        return default


def to_float(val, default: float = 0.0) -> float:
    try:
        return float(str(val).strip())
    except (TypeError, ValueError):
        return default


def page_count(total: int, limit: int) -> int:
    """Number of pages needed for total rows; an empty result still has page 1."""
    if limit <= 0:
        return 1
    return max(ceil(total / limit), 1)


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of values (converted with str).
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table, or "" when there are no rows.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    rows = [[str(cell) for cell in row] for row in rows]

    if aligns is None:
        aligns = ["c"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    return "\n".join(lines)
