from __future__ import annotations

from typing import List, NamedTuple, Sequence

from .types import COLUMNS, GRID_SIZE, ROWS, Card, Slot, is_number


class ClearResult(NamedTuple):
    grid: List[Slot]
    revealed: List[bool]
    removed: List[Card]


def column_slots(index: int) -> List[int]:
    col = index % COLUMNS
    return [col + COLUMNS * r for r in range(ROWS)]


def row_slots(index: int) -> List[int]:
    start = (index // COLUMNS) * COLUMNS
    return list(range(start, start + COLUMNS))


def _line_matches(grid: Sequence[Slot], revealed: Sequence[bool], line: Sequence[int]) -> bool:
    values: List[Slot] = []
    for i in line:
        card = grid[i]
        # Emptied slots never match, so a cleared line is never re-cleared
        if card is None or not is_number(card) or not revealed[i]:
            return False
        values.append(card)
    first = values[0]
    return all(v == first for v in values[1:])


def _clear_line(grid: Sequence[Slot], revealed: Sequence[bool], line: Sequence[int]) -> ClearResult:
    if not _line_matches(grid, revealed, line):
        return ClearResult(list(grid), list(revealed), [])
    next_grid = list(grid)
    next_revealed = list(revealed)
    removed: List[Card] = []
    for i in line:
        card = next_grid[i]
        assert card is not None
        removed.append(card)
        next_grid[i] = None
        next_revealed[i] = True
    return ClearResult(next_grid, next_revealed, removed)


def clear_column_if_matched(grid: Sequence[Slot], revealed: Sequence[bool], changed_index: int) -> ClearResult:
    return _clear_line(grid, revealed, column_slots(changed_index))


def clear_row_if_matched(grid: Sequence[Slot], revealed: Sequence[bool], changed_index: int) -> ClearResult:
    return _clear_line(grid, revealed, row_slots(changed_index))


def clear_matches(
    grid: Sequence[Slot],
    revealed: Sequence[bool],
    changed_index: int,
    rows: bool = False,
) -> ClearResult:
    """Column check for ``changed_index``, then the row check when row clears are on."""
    res = clear_column_if_matched(grid, revealed, changed_index)
    if not rows:
        return res
    row_res = clear_row_if_matched(res.grid, res.revealed, changed_index)
    return ClearResult(row_res.grid, row_res.revealed, res.removed + row_res.removed)


def clear_all_matched_columns(grid: Sequence[Slot], revealed: Sequence[bool], rows: bool = False) -> ClearResult:
    cur = ClearResult(list(grid), list(revealed), [])
    for col in range(COLUMNS):
        res = clear_column_if_matched(cur.grid, cur.revealed, col)
        cur = ClearResult(res.grid, res.revealed, cur.removed + res.removed)
    if rows:
        for row in range(ROWS):
            res = clear_row_if_matched(cur.grid, cur.revealed, row * COLUMNS)
            cur = ClearResult(res.grid, res.revealed, cur.removed + res.removed)
    return cur


def is_fully_revealed(revealed: Sequence[bool]) -> bool:
    return all(revealed)


def hidden_slots(grid: Sequence[Slot], revealed: Sequence[bool]) -> List[int]:
    return [i for i in range(len(grid)) if grid[i] is not None and not revealed[i]]


def score(grid: Sequence[Slot]) -> int:
    s = 0
    for card in grid:
        if is_number(card):
            assert isinstance(card, int)
            s += card
    return s


def valid_index(index: object) -> bool:
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < GRID_SIZE
