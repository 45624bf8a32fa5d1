from __future__ import annotations
from typing import Any, Dict, Iterable, List, Sequence
from .columns import Column

DEFAULT_PADDING = 3


def render_table(rows: Sequence[Sequence[str]], padding: int = DEFAULT_PADDING) -> str:
    """Left-justify cells into columns separated by at least ``padding`` spaces.

    The last cell of each line is not padded, so lines carry no trailing
    whitespace. Wide values grow their column; nothing is truncated.
    """
    widths: Dict[int, int] = {}
    for row in rows:
        for i, cell in enumerate(row[:-1]):
            widths[i] = max(widths.get(i, 0), len(cell))
    lines = []
    for row in rows:
        cells = [cell.ljust(widths[i] + padding) for i, cell in enumerate(row[:-1])]
        if row:
            cells.append(row[-1])
        lines.append(''.join(cells) + '\n')
    return ''.join(lines)


def project(record: Any, columns: Sequence[Column]) -> List[str]:
    return [column(record) for column in columns]


def render_records(records: Iterable[Any], columns: Sequence[Column], sentinel: Any,
                   padding: int = DEFAULT_PADDING) -> str:
    rows = [project(sentinel, columns)]
    rows.extend(project(record, columns) for record in records)
    return render_table(rows, padding)
