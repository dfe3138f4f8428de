from typing import List, Optional

from .errors import CellTaken, OutOfBounds

MARKS = ('X', 'O')

# (d_row, d_col): horizontal, vertical, diagonal, anti-diagonal
DIRECTIONS = ((0, 1), (1, 0), (1, 1), (1, -1))


def other_mark(mark: str) -> str:
    return 'O' if mark == 'X' else 'X'


class Board:
    """N x N grid of cells holding None, 'X' or 'O'."""

    def __init__(self, size: int = 8, win_length: int = 3):
        if size < 1:
            raise ValueError('board size must be positive')
        if win_length < 1 or win_length > size:
            raise ValueError('win length must be between 1 and the board size')
        self.size = size
        self.win_length = win_length
        self.cells: List[List[Optional[str]]] = [[None] * size for _ in range(size)]
        self.filled = 0

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def place(self, row: int, col: int, mark: str) -> None:
        if not self.in_bounds(row, col):
            raise OutOfBounds(f'Cell ({row}, {col}) is outside the {self.size}x{self.size} board', row=row, col=col)
        if self.cells[row][col] is not None:
            raise CellTaken(f'Cell ({row}, {col}) is already taken', row=row, col=col)
        self.cells[row][col] = mark
        self.filled += 1

    def _run(self, row: int, col: int, d_row: int, d_col: int, mark: str) -> int:
        count = 0
        r, c = row + d_row, col + d_col
        while self.in_bounds(r, c) and self.cells[r][c] == mark:
            count += 1
            r += d_row
            c += d_col
        return count

    def line_length(self, row: int, col: int, d_row: int, d_col: int) -> int:
        """Length of the same-mark line through (row, col) along one axis."""
        mark = self.cells[row][col]
        if mark is None:
            return 0
        return 1 + self._run(row, col, d_row, d_col, mark) + self._run(row, col, -d_row, -d_col, mark)

    def is_winning_move(self, row: int, col: int) -> bool:
        # Only lines through the last placed cell can have changed.
        return any(self.line_length(row, col, dr, dc) >= self.win_length for dr, dc in DIRECTIONS)

    def is_full(self) -> bool:
        return self.filled >= self.size * self.size

    def snapshot(self) -> List[List[Optional[str]]]:
        return [list(r) for r in self.cells]
