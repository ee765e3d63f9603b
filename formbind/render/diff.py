"""Positional line diff between the original and current document text.

Lines are compared index by index, not aligned by content: an inserted line
shifts every later line and shows up as a cascade of ``modified`` lines.
Preview highlighting indexes into the rendered document by line position, so
the comparison must stay positional.
"""

from __future__ import annotations

from collections.abc import Iterable

from formbind.render.models import DiffLine


def diff(original: str, current: str) -> list[DiffLine]:
    """Classify every line of ``current`` against the same index of ``original``."""

    original_lines = original.split("\n")
    current_lines = current.split("\n")
    total = max(len(original_lines), len(current_lines))
    original_lines += [""] * (total - len(original_lines))
    current_lines += [""] * (total - len(current_lines))

    result: list[DiffLine] = []
    for index, (before, after) in enumerate(zip(original_lines, current_lines, strict=True)):
        if before == after:
            kind = "unchanged"
        elif not before and after:
            kind = "added"
        else:
            kind = "modified"
        result.append(DiffLine(index=index, kind=kind, content=after))
    return result


def changed_line_count(lines: Iterable[DiffLine]) -> int:
    return sum(1 for line in lines if line.has_changes)
