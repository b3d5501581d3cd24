from __future__ import annotations

from typing import List, Optional

from .catalog import PieceCatalog
from .models import EMPTY, Board, CellState


class PlacementEngine:
    def __init__(self, catalog: PieceCatalog) -> None:
        self.catalog = catalog

    def covered_positions(self, board: Board, piece: str, rotation: int, anchor: int) -> Optional[List[int]]:
        """Positions covered by the offsets, or ``None`` if one leaves the board."""
        x, y = board.to_coordinates(anchor)
        positions: List[int] = []
        for dx, dy in self.catalog.offsets(piece, rotation):
            nx, ny = x + dx, y + dy
            if not board.in_bounds(nx, ny):
                return None
            positions.append(ny * board.width + nx)
        return positions

    def fits(
        self,
        board: Board,
        piece: str,
        rotation: int,
        anchor: int,
        required_anchor_state: CellState = EMPTY,
    ) -> bool:
        if board.get(anchor) != required_anchor_state:
            return False
        x, y = board.to_coordinates(anchor)
        for dx, dy in self.catalog.offsets(piece, rotation):
            nx, ny = x + dx, y + dy
            if not board.in_bounds(nx, ny):
                return False
            if board.get(ny * board.width + nx) != EMPTY:
                return False
        return True

    def place(self, board: Board, piece: str, rotation: int, anchor: int) -> None:
        satellites = self._satellites(board, piece, rotation, anchor)
        board.set(anchor, CellState.occupied(piece, anchor=True))
        satellite = CellState.occupied(piece)
        for pos in satellites:
            board.set(pos, satellite)

    def remove(
        self,
        board: Board,
        piece: str,
        rotation: int,
        anchor: int,
        restore_state: CellState = EMPTY,
    ) -> None:
        satellites = self._satellites(board, piece, rotation, anchor)
        board.set(anchor, restore_state)
        for pos in satellites:
            board.set(pos, EMPTY)

    def _satellites(self, board: Board, piece: str, rotation: int, anchor: int) -> List[int]:
        # Offsets are resolved before any cell is written so a bad
        # piece/rotation pair leaves the board untouched.
        positions = self.covered_positions(board, piece, rotation, anchor)
        if positions is None:
            raise ValueError(
                f"Piece {piece!r} rotation {rotation} leaves the board when anchored at {anchor}"
            )
        return positions
