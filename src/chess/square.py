"""
A square on the board

(placed in its own module as multiple other modules need to import it)

Squares are addressed by (row, col), both 0-indexed:
* row 0 is Black's back rank (the 8th rank), row 7 is White's back rank (the 1st rank)
* col 0 is the a-file, col 7 the h-file
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

# Chess board is always 8x8.
BOARD_SIZE = 8


@dataclass(frozen=True)
class Square:
    row: int
    col: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a8' is (0, 0), 'h1' is (7, 7)"""
        col = ord(sq[0]) - ord("a")
        row = BOARD_SIZE - int(sq[1])
        return cls(row, col)

    def to_algebraic(self) -> str:
        return f"{chr(self.col + ord('a'))}{BOARD_SIZE - self.row}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_SIZE) and (0 <= self.col < BOARD_SIZE)

    def offset(self, d_row: int, d_col: int) -> Square:
        return Square(self.row + d_row, self.col + d_col)


def all_squares() -> Iterator[Square]:
    """Row-major order: a8, b8, ..., h8, a7, ..., h1"""
    for row in range(BOARD_SIZE):
        for col in range(BOARD_SIZE):
            yield Square(row, col)
