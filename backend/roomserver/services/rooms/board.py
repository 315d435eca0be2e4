from typing import NamedTuple, Optional, Sequence, Tuple

from roomserver.models import DRAW

# Checked in this order; the first complete line decides the winner
WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),              # diagonals
)


class Verdict(NamedTuple):
    winner: Optional[str]
    line: Optional[Tuple[int, int, int]]

    @property
    def is_terminal(self) -> bool:
        return self.winner is not None


def evaluate(board: Sequence[Optional[str]]) -> Verdict:
    """Return the verdict for a 9-cell board.

    ``winner`` is the symbol owning the first complete line, ``'draw'`` when
    every cell is taken without one, or ``None`` while the game can go on.
    """
    for line in WIN_LINES:
        a, b, c = line
        if board[a] and board[a] == board[b] == board[c]:
            return Verdict(board[a], line)
    if all(board):
        return Verdict(DRAW, None)
    return Verdict(None, None)
