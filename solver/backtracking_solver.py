from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence, Tuple

from .models import EMPTY, PEG, Board, CellState, SolverStats
from .placement import PlacementEngine

logger = logging.getLogger(__name__)

SolutionCallback = Callable[[Board], None]


class BacktrackingSolver:
    """Place ``pieces`` in order, reporting every full tiling of ``board``.

    Candidates for the head piece are tried rotation by rotation, and within
    a rotation position by position, both ascending. ``replacements`` pieces
    may anchor on a peg instead of an empty cell; the peg is restored when
    the piece is removed.
    """

    def __init__(
        self,
        board: Board,
        engine: PlacementEngine,
        pieces: Sequence[str],
        on_solution: SolutionCallback,
        replacements: int = 0,
        stats: Optional[SolverStats] = None,
    ) -> None:
        for piece in pieces:
            if piece not in engine.catalog:
                raise ValueError(f"Unknown piece: {piece}")
        self.board = board
        self.engine = engine
        self.pieces: Tuple[str, ...] = tuple(pieces)
        self.replacements = replacements
        self.stats = stats if stats is not None else SolverStats()
        self._on_solution = on_solution

    def solve(self) -> int:
        """Run the full search and return the number of solutions found."""
        start = time.time()
        before = self.stats.solutions
        self._search(0, self.replacements)
        self.stats.elapsed += time.time() - start
        found = self.stats.solutions - before
        logger.debug("Search over %s finished with %d solution(s)", "".join(self.pieces), found)
        return found

    def _search(self, depth: int, replacements: int) -> None:
        if depth == len(self.pieces):
            if not self.board.is_complete():
                logger.debug("All pieces placed but empty cells remain")
            self.stats.solutions += 1
            self._on_solution(self.board)
            return
        piece = self.pieces[depth]
        board = self.board
        engine = self.engine
        for rotation in range(engine.catalog.rotation_count(piece)):
            for anchor in board.positions():
                required = self._anchor_state(board.get(anchor), replacements)
                if required is None:
                    continue
                if not engine.fits(board, piece, rotation, anchor, required):
                    continue
                self.stats.placements += 1
                engine.place(board, piece, rotation, anchor)
                remaining = replacements - 1 if required == PEG else replacements
                self._search(depth + 1, remaining)
                engine.remove(board, piece, rotation, anchor, required)
                self.stats.backtracks += 1

    @staticmethod
    def _anchor_state(state: CellState, replacements: int) -> Optional[CellState]:
        if state == EMPTY:
            return EMPTY
        if state == PEG and replacements > 0:
            return PEG
        return None
